"""Tests for ScanConfig validation and load_config merging."""

import os
from dataclasses import FrozenInstanceError

import pytest

from flowmap.config import ScanConfig, load_config
from flowmap.exceptions import ConfigurationError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run with an empty home and working directory and no FLOWMAP_* env."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    for key in list(os.environ):
        if key.startswith("FLOWMAP_"):
            monkeypatch.delenv(key)
    return home, work


class TestScanConfig:
    def test_defaults(self):
        config = ScanConfig()
        assert config.max_files == 300
        assert config.import_depth == 2
        assert config.capture_concurrency == 4
        assert config.capture_api_key is None
        assert config.image_format == "png"

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            ScanConfig().max_files = 5

    @pytest.mark.parametrize(
        "kwargs, key",
        [
            ({"max_files": 0}, "max_files"),
            ({"fetch_workers": 0}, "fetch_workers"),
            ({"capture_retries": -1}, "capture_retries"),
            ({"fetch_backoff_seconds": -0.1}, "fetch_backoff_seconds"),
            ({"image_quality": 101}, "image_quality"),
            ({"image_format": "gif"}, "image_format"),
            ({"detection_saturation": 0}, "detection_saturation"),
        ],
    )
    def test_invalid_values(self, kwargs, key):
        with pytest.raises(ConfigurationError) as exc_info:
            ScanConfig(**kwargs)
        assert exc_info.value.config_key == key

    def test_zero_import_depth_allowed(self):
        assert ScanConfig(import_depth=0).import_depth == 0


class TestLoadConfig:
    def test_no_sources_gives_defaults(self, isolated):
        assert load_config() == ScanConfig()

    def test_project_file(self, isolated):
        _, work = isolated
        (work / "flowmap.toml").write_text("max_files = 50\n")
        assert load_config().max_files == 50

    def test_flowmap_table(self, isolated, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text("[flowmap]\ncapture_concurrency = 2\nblock_ads = false\n")
        config = load_config(config_file=path)
        assert config.capture_concurrency == 2
        assert config.block_ads is False

    def test_priority_order(self, isolated, tmp_path, monkeypatch):
        home, work = isolated
        (home / ".flowmap.toml").write_text("max_files = 10\nimport_depth = 1\nfetch_workers = 3\n")
        (work / "flowmap.toml").write_text("max_files = 20\nimport_depth = 3\n")
        explicit = tmp_path / "explicit.toml"
        explicit.write_text("max_files = 30\n")
        monkeypatch.setenv("FLOWMAP_MAX_FILES", "40")

        config = load_config(config_file=explicit)
        assert config.fetch_workers == 3
        assert config.import_depth == 3
        assert config.max_files == 40
        assert load_config(config_file=explicit, max_files=50).max_files == 50

    def test_none_overrides_ignored(self, isolated):
        _, work = isolated
        (work / "flowmap.toml").write_text('store_dir = "records"\n')
        assert load_config(store_dir=None).store_dir == "records"

    def test_env_parsing(self, isolated, monkeypatch):
        monkeypatch.setenv("FLOWMAP_BLOCK_TRACKERS", "off")
        monkeypatch.setenv("FLOWMAP_CAPTURE_BACKOFF_SECONDS", "1.5")
        monkeypatch.setenv("FLOWMAP_CAPTURE_API_KEY", "key-123")
        monkeypatch.setenv("FLOWMAP_IMAGE_FORMAT", "webp")
        config = load_config()
        assert config.block_trackers is False
        assert config.capture_backoff_seconds == 1.5
        assert config.capture_api_key == "key-123"
        assert config.image_format == "webp"

    def test_bad_env_value(self, isolated, monkeypatch):
        monkeypatch.setenv("FLOWMAP_MAX_FILES", "lots")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config()
        assert exc_info.value.config_key == "max_files"

    def test_unknown_key(self, isolated):
        _, work = isolated
        (work / "flowmap.toml").write_text("max_filez = 5\n")
        with pytest.raises(ConfigurationError, match="max_filez"):
            load_config()

    def test_missing_explicit_file(self, isolated, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(config_file=tmp_path / "absent.toml")

    def test_malformed_toml(self, isolated):
        _, work = isolated
        (work / "flowmap.toml").write_text("max_files = = 5\n")
        with pytest.raises(ConfigurationError, match="Invalid project config"):
            load_config()

    def test_merged_values_validated(self, isolated):
        with pytest.raises(ConfigurationError):
            load_config(capture_concurrency=0)
