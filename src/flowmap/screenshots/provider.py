"""Capture provider interface and its HTTP implementation."""

from __future__ import annotations

from typing import Any, Optional, Protocol

import requests

from ..config import ScanConfig
from ..exceptions import ConfigurationError
from ..logging_config import get_logger
from .models import CaptureOutcome

logger = get_logger(__name__)


class CaptureProvider(Protocol):
    def capture(self, url: str, screen_path: str) -> CaptureOutcome:
        ...


class HttpCaptureProvider:
    """Screenshot API client.

    The API renders ``url`` and answers with JSON naming where the stored
    image lives. Timeouts, connection failures, 429 and 5xx answers are
    retryable; other 4xx answers are not.
    """

    def __init__(
        self,
        api_key: str,
        api_base_url: str = "https://api.screenshotone.com/take",
        timeout: float = 60.0,
        params: Optional[dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("capture_api_key not configured", config_key="capture_api_key")
        self.api_key = api_key
        self.api_base_url = api_base_url
        self.timeout = timeout
        self.params = dict(params or {})
        self._session = session or requests.Session()

    @classmethod
    def from_config(
        cls, config: ScanConfig, session: Optional[requests.Session] = None
    ) -> "HttpCaptureProvider":
        params = {
            "viewport_width": str(config.viewport_width),
            "viewport_height": str(config.viewport_height),
            "device_scale_factor": str(config.device_scale_factor),
            "format": config.image_format,
            "image_quality": str(config.image_quality),
            "block_ads": _bool_param(config.block_ads),
            "block_cookie_banners": _bool_param(config.block_cookie_banners),
            "block_trackers": _bool_param(config.block_trackers),
            "cache": "true",
            "cache_ttl": str(config.capture_cache_ttl_seconds),
            "response_type": "json",
        }
        return cls(
            api_key=config.capture_api_key or "",
            api_base_url=config.capture_api_base_url,
            timeout=config.capture_timeout_seconds,
            params=params,
            session=session,
        )

    def capture(self, url: str, screen_path: str) -> CaptureOutcome:
        params = {"access_key": self.api_key, "url": url, **self.params}
        try:
            resp = self._session.get(self.api_base_url, params=params, timeout=self.timeout)
        except requests.Timeout:
            return CaptureOutcome("error", error=f"Capture timed out for {screen_path}")
        except requests.RequestException as e:
            return CaptureOutcome("error", error=f"Capture provider unreachable: {e}")

        if resp.status_code >= 400:
            retryable = resp.status_code == 429 or resp.status_code >= 500
            logger.debug(f"Capture API error {resp.status_code} for {url}: {resp.text[:200]}")
            return CaptureOutcome(
                "error",
                error=f"Screenshot API error: {resp.status_code}",
                retryable=retryable,
            )

        try:
            body: Any = resp.json()
        except ValueError:
            return CaptureOutcome("error", error="Screenshot API returned a non-JSON body")

        image_url = _image_url(body)
        if not image_url:
            return CaptureOutcome(
                "error", error="Screenshot API response has no image URL", retryable=False
            )
        return CaptureOutcome("ok", url=image_url)


def _image_url(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    for key in ("cache_url", "url", "screenshot_url"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    store = body.get("store")
    if isinstance(store, dict) and isinstance(store.get("location"), str):
        return store["location"]
    return None


def _bool_param(value: bool) -> str:
    return "true" if value else "false"
