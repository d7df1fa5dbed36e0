"""Tests for screen discovery across framework conventions."""

import json

import pytest

from flowmap.detection import FrameworkDetectionResult, FrameworkDetector
from flowmap.graph import screen_id
from flowmap.screens import ScreenExtractor
from flowmap.screens.routes import (
    app_router_route,
    convert_segment,
    name_from_route,
    nuxt_route,
    pages_router_route,
)


def _extract(paths, contents=None, detection=None, hashes=None):
    contents = contents or {}
    detection = detection or FrameworkDetector().detect(paths, contents)
    return ScreenExtractor().extract(paths, contents, detection, hashes=hashes)


def _routes(screens):
    return [s.route_path for s in screens]


class TestRouteConventions:
    """File-system route mapping."""

    @pytest.mark.parametrize(
        "segment, expected",
        [
            ("users", "users"),
            ("[id]", ":id"),
            ("[...slug]", ":slug*"),
            ("[[...slug]]", ":slug*"),
        ],
    )
    def test_convert_segment(self, segment, expected):
        assert convert_segment(segment) == expected

    def test_app_router_skips_groups_and_slots(self):
        assert app_router_route("app/page.tsx") == "/"
        assert app_router_route("app/(marketing)/pricing/page.tsx") == "/pricing"
        assert app_router_route("app/@modal/login/page.tsx") == "/login"
        assert app_router_route("src/app/blog/[slug]/page.tsx") == "/blog/:slug"

    def test_app_router_ignores_non_page_files(self):
        assert app_router_route("app/layout.tsx") is None
        assert app_router_route("app/blog/loading.tsx") is None

    def test_pages_router(self):
        assert pages_router_route("pages/index.tsx") == "/"
        assert pages_router_route("pages/blog/index.jsx") == "/blog"
        assert pages_router_route("pages/docs/[...path].tsx") == "/docs/:path*"

    def test_pages_router_excludes_api_and_special_files(self):
        assert pages_router_route("pages/api/users.ts") is None
        assert pages_router_route("pages/_app.tsx") is None
        assert pages_router_route("pages/_document.tsx") is None

    def test_nuxt(self):
        assert nuxt_route("pages/index.vue") == "/"
        assert nuxt_route("pages/users/[id].vue") == "/users/:id"
        assert nuxt_route("pages/users/[id].tsx") is None

    def test_name_from_route(self):
        assert name_from_route("/") == "Home"
        assert name_from_route("/user-settings") == "User settings"
        assert name_from_route("/users/:id") == "Id"


class TestNextAppRouter:
    def test_spec_example_tree(self):
        paths = ["next.config.js", "app/page.tsx", "app/about/page.tsx"]
        screens = _extract(paths)

        assert _routes(screens) == ["/", "/about"]
        assert [s.source_file for s in screens] == ["app/page.tsx", "app/about/page.tsx"]
        assert all(s.kind == "page" for s in screens)
        assert screens[0].name == "Home"
        assert screens[1].name == "About"

    def test_ids_are_stable(self):
        paths = ["next.config.js", "app/page.tsx"]
        first = _extract(paths)
        second = _extract(list(reversed(paths)))
        assert first[0].id == second[0].id == screen_id("app/page.tsx", "/")

    def test_navigation_and_hashes_attached(self):
        paths = ["next.config.js", "app/page.tsx", "app/about/page.tsx"]
        contents = {"app/page.tsx": '<Link href="/about">About</Link>'}
        screens = _extract(paths, contents, hashes={"app/page.tsx": "abc123"})

        home = screens[0]
        assert home.navigates_to == ["/about"]
        assert home.source_hash == "abc123"
        assert screens[1].navigates_to == []
        assert screens[1].source_hash is None


class TestFallThrough:
    def test_secondary_candidate_used_when_primary_finds_nothing(self):
        # Primary is the app router, but only pages/ exists
        paths = ["next.config.js", "pages/index.tsx", "pages/contact.tsx"]
        detection = FrameworkDetectionResult(
            detected={"nextjs-app-router": 4.5, "nextjs-pages-router": 3.0},
            primary="nextjs-app-router",
        )
        screens = _extract(paths, detection=detection)
        assert _routes(screens) == ["/", "/contact"]
        assert screens[0].framework == "nextjs-pages-router"

    def test_heuristic_when_no_framework(self):
        paths = [
            "src/screens/HomeScreen.tsx",
            "src/screens/SettingsScreen.tsx",
            "src/components/pages/Widget.tsx",
        ]
        screens = _extract(paths, detection=FrameworkDetectionResult())
        assert _routes(screens) == ["/home", "/settings"]
        assert [s.name for s in screens] == ["Home", "Settings"]
        assert all(s.kind == "screen" for s in screens)

    def test_heuristic_views_directory(self):
        screens = _extract(["src/views/Index.vue"], detection=FrameworkDetectionResult())
        assert _routes(screens) == ["/"]
        assert screens[0].kind == "view"

    def test_no_screens_is_empty_not_defaulted(self):
        screens = _extract(["src/lib/util.ts", "README.md"], detection=FrameworkDetectionResult())
        assert screens == []


class TestReactRouter:
    APP = """
import { BrowserRouter, Routes, Route, Navigate } from "react-router-dom";
import Layout from "./Layout";
import Home from "./pages/Home";
import { UserDetail } from "./pages/UserDetail";

export default function App() {
  return (
    <BrowserRouter basename="/app">
      <Routes>
        <Route path="/" element={<Layout />}>
          <Route index element={<Home />} />
          <Route path="users/:id" element={<UserDetail />} />
        </Route>
        <Route path="/old" element={<Navigate to="/" />} />
        <Route path="*" element={<NotFound />} />
      </Routes>
    </BrowserRouter>
  );
}
"""

    def _tree(self):
        paths = [
            "package.json",
            "src/App.tsx",
            "src/Layout.tsx",
            "src/pages/Home.tsx",
            "src/pages/UserDetail.tsx",
        ]
        contents = {
            "package.json": json.dumps({"dependencies": {"react": "18", "react-router-dom": "6"}}),
            "src/App.tsx": self.APP,
        }
        return paths, contents

    def test_nested_routes_with_basename(self):
        paths, contents = self._tree()
        screens = _extract(paths, contents)

        assert _routes(screens) == ["/app", "/app/users/:id"]
        assert [s.source_file for s in screens] == ["src/pages/Home.tsx", "src/pages/UserDetail.tsx"]
        assert [s.name for s in screens] == ["Home", "UserDetail"]
        assert all(s.framework == "react-router" for s in screens)

    def test_redirects_layouts_and_wildcards_skipped(self):
        paths, contents = self._tree()
        names = {s.name for s in _extract(paths, contents)}
        assert "Layout" not in names
        assert "Navigate" not in names
        assert "NotFound" not in names

    def test_unresolved_component_falls_back_to_router_file(self):
        paths = ["src/App.tsx"]
        contents = {"src/App.tsx": '<Routes><Route path="/x" element={<Missing />} /></Routes>'}
        detection = FrameworkDetectionResult(detected={"react-router": 3.5}, primary="react-router")
        screens = _extract(paths, contents, detection)
        assert [(s.route_path, s.source_file) for s in screens] == [("/x", "src/App.tsx")]


class TestCommander:
    def test_commands_become_cli_screens(self):
        paths = ["package.json", "bin/cli.js"]
        contents = {
            "package.json": json.dumps(
                {"name": "@acme/tool", "bin": {"acme": "bin/cli.js"}, "dependencies": {"commander": "11"}}
            ),
            "bin/cli.js": (
                "const program = new Command();\n"
                "program.command('init <dir>').action(init);\n"
                'program.command("deploy-site").action(deploy);\n'
                'program.command("<arg>");\n'
            ),
        }
        screens = _extract(paths, contents)

        assert _routes(screens) == ["acme deploy-site", "acme init"]
        assert [s.name for s in screens] == ["Deploy Site", "Init"]
        assert all(s.kind == "cli-command" for s in screens)
        assert all(s.navigates_to == [] for s in screens)


class TestReactFallbacks:
    def test_state_driven_views(self):
        app = """
import Dashboard from "./Dashboard";
import Settings from "./Settings";

export default function App() {
  const [currentView, setCurrentView] = useState("dashboard");
  switch (currentView) {
    case "dashboard": return <Dashboard />;
    case "settings":
      return <Settings />;
  }
}
"""
        paths = ["package.json", "src/App.tsx", "src/Dashboard.tsx", "src/Settings.tsx"]
        contents = {
            "package.json": json.dumps({"dependencies": {"react": "18"}}),
            "src/App.tsx": app,
        }
        screens = _extract(paths, contents)

        assert _routes(screens) == ["/view/dashboard", "/view/settings"]
        assert [s.source_file for s in screens] == ["src/Dashboard.tsx", "src/Settings.tsx"]
        assert all(s.kind == "view" for s in screens)

    def test_hash_views(self):
        app = 'const validPages = ["home", "profile", "bad page"];\n'
        contents = {
            "package.json": json.dumps({"dependencies": {"react": "18"}}),
            "src/App.jsx": app,
        }
        screens = _extract(["package.json", "src/App.jsx"], contents)
        assert _routes(screens) == ["/hash/home", "/hash/profile"]
        assert {s.source_file for s in screens} == {"src/App.jsx"}


class TestDeduplication:
    def test_one_screen_per_file_and_route(self):
        app = """
<Routes>
  <Route path="/a" element={<A />} />
  <Route path="/a" element={<A />} />
</Routes>
"""
        detection = FrameworkDetectionResult(detected={"react-router": 3.5}, primary="react-router")
        screens = _extract(["src/App.tsx"], {"src/App.tsx": app}, detection)
        assert len(screens) == 1
