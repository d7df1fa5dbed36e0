"""Incremental screenshot capture."""

from .models import CaptureOutcome, CaptureResponse, ScreenshotResult, ScreenshotTarget
from .orchestrator import ScreenshotOrchestrator
from .planner import (
    apply_results,
    carry_forward,
    is_capturable,
    mark_pending,
    plan_captures,
    targets_for,
)
from .provider import CaptureProvider, HttpCaptureProvider

__all__ = [
    "CaptureOutcome",
    "CaptureProvider",
    "CaptureResponse",
    "HttpCaptureProvider",
    "ScreenshotOrchestrator",
    "ScreenshotResult",
    "ScreenshotTarget",
    "apply_results",
    "carry_forward",
    "is_capturable",
    "mark_pending",
    "plan_captures",
    "targets_for",
]
