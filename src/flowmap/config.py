"""Configuration loading and management for flowmap.

Configuration sources are merged in priority order:
    1. Defaults (defined in ScanConfig)
    2. Global config (~/.flowmap.toml)
    3. Project config (./flowmap.toml)
    4. Explicit config file
    5. Environment variables (FLOWMAP_* prefix)
    6. Overrides passed as kwargs (typically CLI flags)

Example:
    >>> config = load_config(capture_concurrency=2)
    >>> config.capture_concurrency
    2
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError

ImageFormat = Literal["png", "jpg", "webp"]


@dataclass(frozen=True)
class ScanConfig:
    """Limits, concurrency and endpoint settings for a scan.

    Attributes:
        Fetching:
            max_files: Ceiling on file contents fetched per scan
            max_file_size_bytes: Larger blobs are skipped, not fetched
            fetch_workers: Parallel content fetches
            fetch_retries: Retries per tree/content request
            fetch_backoff_seconds: Base of the fetch retry backoff
            request_timeout_seconds: Timeout for each tree/content request

        Extraction:
            import_depth: How many import hops the flow extractor follows
            max_closure_files: Files visited per screen closure
            max_flows_per_file: Flows kept per file before truncation
            max_body_lines: Longest function body scanned for calls

        Detection:
            detection_threshold: Minimum score for a primary framework
            detection_saturation: Score at which confidence stops growing

        Screenshots:
            capture_concurrency: Simultaneous in-flight capture requests
            capture_retries: Retries per failing capture
            capture_backoff_seconds: Base of the exponential backoff
            capture_timeout_seconds: Timeout for one capture request
    """

    # Fetching
    max_files: int = 300
    max_file_size_bytes: int = 512 * 1024
    fetch_workers: int = 8
    fetch_retries: int = 2
    fetch_backoff_seconds: float = 0.5
    request_timeout_seconds: float = 15.0

    # Extraction
    import_depth: int = 2
    max_closure_files: int = 25
    max_flows_per_file: int = 200
    max_body_lines: int = 400

    # Detection
    detection_threshold: float = 2.0
    detection_saturation: float = 5.0

    # Screenshots
    capture_concurrency: int = 4
    capture_retries: int = 2
    capture_backoff_seconds: float = 0.5
    capture_timeout_seconds: float = 60.0

    # Endpoints
    github_api_base_url: str = "https://api.github.com"
    capture_api_base_url: str = "https://api.screenshotone.com/take"
    capture_api_key: Optional[str] = None

    # Capture rendering
    viewport_width: int = 1440
    viewport_height: int = 900
    device_scale_factor: int = 1
    image_format: ImageFormat = "png"
    image_quality: int = 80
    block_ads: bool = True
    block_cookie_banners: bool = True
    block_trackers: bool = True
    capture_cache_ttl_seconds: int = 2592000

    # Storage
    store_dir: str = ".flowmap-store"

    # Scanning local checkouts
    allow_hidden_files: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        positive_ints = [
            "max_files",
            "max_file_size_bytes",
            "fetch_workers",
            "max_closure_files",
            "max_flows_per_file",
            "max_body_lines",
            "capture_concurrency",
            "viewport_width",
            "viewport_height",
            "device_scale_factor",
        ]
        for name in positive_ints:
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1", config_key=name)

        for name in ("fetch_retries", "capture_retries", "import_depth"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be non-negative", config_key=name)

        if self.request_timeout_seconds <= 0 or self.capture_timeout_seconds <= 0:
            raise ConfigurationError("timeouts must be positive", config_key="timeout")
        for name in ("fetch_backoff_seconds", "capture_backoff_seconds"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be non-negative", config_key=name)
        if self.detection_threshold < 0:
            raise ConfigurationError(
                "detection_threshold must be non-negative", config_key="detection_threshold"
            )
        if self.detection_saturation <= 0:
            raise ConfigurationError(
                "detection_saturation must be positive", config_key="detection_saturation"
            )
        if not 1 <= self.image_quality <= 100:
            raise ConfigurationError(
                "image_quality must be between 1 and 100", config_key="image_quality"
            )
        if self.image_format not in ("png", "jpg", "webp"):
            raise ConfigurationError(
                f"unsupported image_format '{self.image_format}'", config_key="image_format"
            )


DEFAULT_CONFIG = ScanConfig()


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> ScanConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options keep lower-priority values.

    Returns:
        Validated ScanConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".flowmap.toml"
    if global_config.exists():
        merged.update(_read_config_file(global_config, "global"))

    project_config = Path.cwd() / "flowmap.toml"
    if project_config.exists():
        merged.update(_read_config_file(project_config, "project"))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_read_config_file(config_file, "explicit"))

    merged.update(_load_env_vars())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(ScanConfig)}
    unknown = sorted(set(merged) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

    return ScanConfig(**merged)


def _read_config_file(path: Path, label: str) -> dict[str, Any]:
    try:
        data = _load_toml_file(path)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Invalid {label} config '{path}': {e}")
    # Accept both a flat file and a [flowmap] table.
    section = data.get("flowmap", data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"Invalid {label} config '{path}': [flowmap] must be a table")
    return dict(section)


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from FLOWMAP_* environment variables.

    Each ScanConfig field maps to ``FLOWMAP_<FIELD_NAME_UPPER>``, for example
    ``FLOWMAP_MAX_FILES=500`` or ``FLOWMAP_CAPTURE_API_KEY=...``.
    """
    type_hints = get_type_hints(ScanConfig)
    result: dict[str, Any] = {}

    for f in fields(ScanConfig):
        env_key = f"FLOWMAP_{f.name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hints[f.name])
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}", config_key=f.name)
        if parsed is not None:
            result[f.name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the annotated type."""
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none = [t for t in args if t is not type(None)]
        if non_none:
            type_hint = non_none[0]

    origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict."""
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
