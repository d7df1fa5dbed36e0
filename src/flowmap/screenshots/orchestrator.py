"""Bounded-concurrency screenshot capture with retries.

Usage:
    orchestrator = ScreenshotOrchestrator(provider, concurrency=4, retries=2)
    record, response = orchestrator.refresh(new, previous, base_url, project_id)

Individual capture failures never fail the call; they come back as
``error`` results next to the successful ones.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Sequence

from ..exceptions import ExternalDependencyError
from ..graph.models import AnalysisRecord
from ..logging_config import get_logger
from .models import CaptureOutcome, CaptureResponse, ScreenshotResult, ScreenshotTarget
from .planner import apply_results, carry_forward, mark_pending, plan_captures, targets_for
from .provider import CaptureProvider

logger = get_logger(__name__)


class ScreenshotOrchestrator:
    def __init__(
        self,
        provider: CaptureProvider,
        concurrency: int = 4,
        retries: int = 2,
        backoff_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.provider = provider
        self.concurrency = max(1, concurrency)
        self.retries = max(0, retries)
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    plan_captures = staticmethod(plan_captures)
    carry_forward = staticmethod(carry_forward)
    mark_pending = staticmethod(mark_pending)
    apply_results = staticmethod(apply_results)

    def capture(
        self, project_id: str, base_url: str, targets: Sequence[ScreenshotTarget]
    ) -> CaptureResponse:
        """Capture ``targets`` with at most ``concurrency`` requests in flight.

        Results keep the order of ``targets``.
        """
        if not targets:
            return CaptureResponse(captured=0, total=0, results=[])

        logger.info(f"Capturing {len(targets)} screens for project {project_id}")
        base = base_url.rstrip("/")
        workers = min(self.concurrency, len(targets))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(lambda t: self._capture_one(base, t), targets))

        captured = sum(1 for r in results if r.status == "ok")
        logger.info(f"Captured {captured}/{len(targets)} screens for project {project_id}")
        return CaptureResponse(captured=captured, total=len(targets), results=results)

    def _capture_one(self, base_url: str, target: ScreenshotTarget) -> ScreenshotResult:
        url = f"{base_url}{target.path}"
        outcome = CaptureOutcome("error", error="not attempted")
        for attempt in range(self.retries + 1):
            outcome = self._attempt(url, target.path)
            if outcome.status == "ok":
                return ScreenshotResult(target.id, "ok", url=outcome.url)
            if not outcome.retryable or attempt >= self.retries:
                break
            delay = self.backoff_seconds * (2**attempt)
            logger.debug(
                f"Capture of {url} failed ({outcome.error}); "
                f"retry {attempt + 1}/{self.retries} in {delay:.2f}s"
            )
            self._sleep(delay)

        logger.warning(f"Screenshot capture failed for {target.id} ({url}): {outcome.error}")
        return ScreenshotResult(target.id, "error", error=outcome.error or "capture failed")

    def _attempt(self, url: str, screen_path: str) -> CaptureOutcome:
        try:
            return self.provider.capture(url, screen_path)
        except ExternalDependencyError as e:
            return CaptureOutcome("error", error=str(e), retryable=e.retryable)
        except Exception as e:
            logger.debug(f"Capture provider raised for {url}", exc_info=True)
            return CaptureOutcome("error", error=f"{type(e).__name__}: {e}")

    def refresh(
        self,
        new: AnalysisRecord,
        previous: Optional[AnalysisRecord],
        base_url: str,
        project_id: str,
        on_pending: Optional[Callable[[AnalysisRecord], None]] = None,
    ) -> tuple[AnalysisRecord, CaptureResponse]:
        """Plan, mark pending, capture and fold results into a new record.

        ``on_pending`` receives the pending record before any request is
        issued, so callers can persist it first.
        """
        record = carry_forward(new, previous)
        selected = plan_captures(record, previous)
        if not selected:
            logger.info("No screens need a new screenshot")
            return record, CaptureResponse(captured=0, total=0, results=[])

        record = mark_pending(record, [s.id for s in selected])
        if on_pending is not None:
            on_pending(record)

        response = self.capture(project_id, base_url, targets_for(selected))
        return apply_results(record, response.results), response
