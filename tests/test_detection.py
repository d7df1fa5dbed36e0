"""Tests for weighted framework detection."""

import json

import pytest

from flowmap.detection import FrameworkDetectionResult, FrameworkDetector, parse_package_json


def _package(*deps, bin_name=None):
    data = {"name": "demo", "dependencies": {d: "^1.0.0" for d in deps}}
    if bin_name:
        data["bin"] = {bin_name: "./bin/cli.js"}
    return json.dumps(data)


class TestPrimarySelection:
    """Primary framework choice and confidence."""

    def test_next_app_router(self):
        paths = ["package.json", "next.config.js", "app/page.tsx", "app/about/page.tsx"]
        contents = {"package.json": _package("next", "react", "react-dom")}
        result = FrameworkDetector().detect(paths, contents)

        assert result.primary == "nextjs-app-router"
        assert result.detected["nextjs-app-router"] == pytest.approx(7.0)
        assert result.detected["nextjs-pages-router"] == pytest.approx(5.5)
        assert result.detected["react"] == pytest.approx(1.0)
        assert result.confidence == pytest.approx(round(7.0 / 13.5, 4))

    def test_pages_router_beats_app_router_without_app_dir(self):
        paths = ["next.config.mjs", "pages/index.tsx", "pages/blog/[slug].tsx"]
        result = FrameworkDetector().detect(paths, {})
        assert result.primary == "nextjs-pages-router"

    def test_src_prefixed_app_dir(self):
        paths = ["next.config.ts", "src/app/page.tsx"]
        result = FrameworkDetector().detect(paths)
        assert result.primary == "nextjs-app-router"

    def test_nuxt(self):
        paths = ["nuxt.config.ts", "pages/index.vue", "pages/users/[id].vue"]
        result = FrameworkDetector().detect(paths)
        assert result.primary == "nuxt"
        assert result.detected["nuxt"] == pytest.approx(4.5)

    def test_react_router_from_dependency_and_content(self):
        paths = ["package.json", "src/App.tsx"]
        contents = {
            "package.json": _package("react", "react-router-dom"),
            "src/App.tsx": '<Routes>\n  <Route path="/" element={<Home />} />\n</Routes>',
        }
        result = FrameworkDetector().detect(paths, contents)
        assert result.primary == "react-router"
        assert result.detected["react-router"] == pytest.approx(3.5)

    def test_cli_commander(self):
        paths = ["package.json", "bin/cli.js"]
        contents = {
            "package.json": _package("commander", bin_name="tool"),
            "bin/cli.js": "program.command('init').action(run)",
        }
        result = FrameworkDetector().detect(paths, contents)
        assert result.primary == "cli-commander"
        assert result.detected["cli-commander"] == pytest.approx(4.5)

    def test_react_marker_never_primary(self):
        contents = {"package.json": _package("react", "react-dom")}
        result = FrameworkDetector().detect(["package.json", "src/App.jsx"], contents)
        assert result.primary is None
        assert result.confidence == 0.0
        assert "react" in result.detected

    def test_below_threshold_has_no_primary(self):
        # A router-looking file alone scores 1.0
        contents = {"src/App.tsx": "<Routes></Routes>"}
        result = FrameworkDetector().detect(["src/App.tsx"], contents)
        assert result.detected == {"react-router": 1.0}
        assert result.primary is None

    def test_empty_tree(self):
        result = FrameworkDetector().detect([])
        assert result.detected == {}
        assert result.primary is None
        assert result.signals == []

    def test_confidence_scaled_by_saturation(self):
        result = FrameworkDetector(saturation=10.0).detect(["nuxt.config.ts"])
        # Only candidate: share 1.0, strength 3/10
        assert result.confidence == pytest.approx(0.3)


class TestDeterminism:
    """Same evidence, same answer."""

    def test_path_order_irrelevant(self):
        paths = ["pages/index.tsx", "next.config.js", "app/page.tsx", "pages/a.tsx"]
        a = FrameworkDetector().detect(paths)
        b = FrameworkDetector().detect(list(reversed(paths)) + paths)
        assert a.to_dict() == b.to_dict()

    def test_tie_breaks_by_candidate_order(self):
        # next.config alone scores both next candidates equally
        result = FrameworkDetector().detect(["next.config.js"])
        assert result.ranked()[:2] == ["nextjs-app-router", "nextjs-pages-router"]
        assert result.primary == "nextjs-app-router"

    def test_each_rule_counted_once(self):
        paths = ["app/page.tsx", "app/a/page.tsx", "app/b/page.tsx", "next.config.js"]
        result = FrameworkDetector().detect(paths)
        assert result.detected["nextjs-app-router"] == pytest.approx(4.5)


class TestSerialization:
    def test_to_dict_round_trip(self):
        result = FrameworkDetector().detect(["nuxt.config.ts", "pages/index.vue"])
        restored = FrameworkDetectionResult.from_dict(result.to_dict())
        assert restored == result


class TestPackageJson:
    def test_malformed_is_absent(self):
        assert parse_package_json("{not json") is None

    def test_non_object_is_absent(self):
        assert parse_package_json("[1, 2]") is None

    def test_malformed_manifest_does_not_fail_detection(self):
        result = FrameworkDetector().detect(
            ["package.json", "nuxt.config.ts"], {"package.json": "{oops"}
        )
        assert result.primary == "nuxt"
