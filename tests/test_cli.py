"""Tests for the typer CLI commands."""

import json

import pytest
from typer.testing import CliRunner

from flowmap import __version__
from flowmap.cli import app

runner = CliRunner()


@pytest.fixture
def project(tmp_path, next_app_files):
    """Next.js project on disk."""
    root = tmp_path / "shop"
    for path, content in next_app_files.items():
        target = root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    return root


@pytest.fixture
def store_dir(tmp_path, monkeypatch):
    """Store directory, with config discovery and FLOWMAP_* env isolated."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(home)
    monkeypatch.delenv("FLOWMAP_CAPTURE_API_KEY", raising=False)
    monkeypatch.delenv("FLOWMAP_STORE_DIR", raising=False)
    return str(tmp_path / "store")


def _scan_json(project, store_dir):
    result = runner.invoke(
        app, ["-q", "scan", str(project), "--name", "acme/shop", "--store", store_dir, "--json"]
    )
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestScan:
    def test_json_output(self, project, store_dir):
        data = _scan_json(project, store_dir)
        assert data["framework"]["primary"] == "nextjs-app-router"
        assert [s["routePath"] for s in data["screens"]] == ["/", "/about", "/users/:id"]
        assert data["cached"] is False
        assert data["coverage"] == pytest.approx(0.75)

    def test_second_scan_is_cached(self, project, store_dir):
        first = _scan_json(project, store_dir)
        second = _scan_json(project, store_dir)
        assert second["cached"] is True
        assert second["analysisId"] == first["analysisId"]

    def test_table_output(self, project, store_dir):
        result = runner.invoke(app, ["-q", "scan", str(project), "--store", store_dir, "--flows"])
        assert result.exit_code == 0, result.output
        assert "nextjs-app-router" in result.stdout
        assert "/about" in result.stdout
        assert "app/users/[id]/page.tsx" in result.stdout
        assert "GET /api/items" in result.stdout

    def test_missing_directory(self, tmp_path, store_dir):
        result = runner.invoke(app, ["-q", "scan", str(tmp_path / "nope"), "--store", store_dir])
        assert result.exit_code != 0


class TestShow:
    def test_show_stored_record(self, project, store_dir):
        analysis = _scan_json(project, store_dir)["analysisId"]
        result = runner.invoke(app, ["-q", "show", analysis, "--store", store_dir, "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["analysisId"] == analysis
        assert data["repo"] == "acme/shop"

    def test_check_clean_record(self, project, store_dir):
        analysis = _scan_json(project, store_dir)["analysisId"]
        result = runner.invoke(app, ["-q", "show", analysis, "--store", store_dir, "--check"])
        assert result.exit_code == 0, result.output
        assert "Integrity problems: 0" in result.stdout

    def test_unknown_id(self, store_dir):
        result = runner.invoke(app, ["-q", "show", "0000000000000000", "--store", store_dir])
        assert result.exit_code == 1
        assert "[FM600]" in result.stdout


class TestCapture:
    def test_requires_api_key(self, project, store_dir):
        analysis = _scan_json(project, store_dir)["analysisId"]
        result = runner.invoke(
            app,
            ["-q", "capture", analysis, "--base-url", "https://shop.example.com", "--store", store_dir],
        )
        assert result.exit_code == 1
        assert "not configured" in result.stdout
