"""Screen discovery."""

from .extractor import ScreenExtractor
from .models import SCREEN_KINDS, SCREENSHOT_STATUSES, Screen, ScreenKind, ScreenshotStatus
from .navigation import extract_navigation_links

__all__ = [
    "Screen",
    "ScreenExtractor",
    "ScreenKind",
    "ScreenshotStatus",
    "SCREEN_KINDS",
    "SCREENSHOT_STATUSES",
    "extract_navigation_links",
]
