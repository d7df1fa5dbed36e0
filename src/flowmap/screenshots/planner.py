"""Incremental capture planning and status folding.

All functions return new records; inputs are left untouched.

Status only moves none -> pending -> ok | error within one capture cycle,
and ``last_screenshot_commit`` only advances on ``ok``.
"""

from __future__ import annotations

import dataclasses
from typing import Iterable, Optional

from ..graph.models import AnalysisRecord
from ..screens.models import Screen
from .models import ScreenshotResult, ScreenshotTarget


def is_capturable(screen: Screen) -> bool:
    """Only concrete URL routes can be rendered; CLI commands and
    parameterized routes cannot."""
    return screen.route_path.startswith("/") and ":" not in screen.route_path


def _with_screens(record: AnalysisRecord, screens: list[Screen]) -> AnalysisRecord:
    return dataclasses.replace(record, screens=screens)


def carry_forward(new: AnalysisRecord, previous: Optional[AnalysisRecord]) -> AnalysisRecord:
    """Copy screenshot state from ``previous`` onto matching screens of ``new``."""
    if previous is None:
        return _with_screens(new, [dataclasses.replace(s) for s in new.screens])
    prior = {s.id: s for s in previous.screens}
    screens = []
    for screen in new.screens:
        old = prior.get(screen.id)
        if old is None:
            screens.append(dataclasses.replace(screen))
            continue
        screens.append(
            dataclasses.replace(
                screen,
                screenshot_status=old.screenshot_status,
                screenshot_url=old.screenshot_url if old.screenshot_status == "ok" else None,
                last_screenshot_commit=old.last_screenshot_commit,
                screenshot_source_hash=old.screenshot_source_hash,
            )
        )
    return _with_screens(new, screens)


def plan_captures(new: AnalysisRecord, previous: Optional[AnalysisRecord]) -> list[Screen]:
    """Screens of ``new`` that need a capture.

    A screen is selected when it is new, when it never captured
    successfully, or when its last capture predates ``new.commit_sha`` and
    its source content differs from what that capture rendered (or its
    route changed since ``previous``).
    """
    prior = {s.id: s for s in previous.screens} if previous else {}
    selected = []
    for screen in new.screens:
        if not is_capturable(screen):
            continue
        old = prior.get(screen.id)
        if old is None or old.screenshot_status != "ok":
            selected.append(screen)
            continue
        if old.last_screenshot_commit == new.commit_sha:
            continue
        if (
            old.screenshot_source_hash != screen.source_hash
            or old.route_path != screen.route_path
        ):
            selected.append(screen)
    return selected


def targets_for(screens: Iterable[Screen]) -> list[ScreenshotTarget]:
    return [ScreenshotTarget(id=s.id, name=s.name, path=s.route_path) for s in screens]


def mark_pending(record: AnalysisRecord, screen_ids: Iterable[str]) -> AnalysisRecord:
    ids = set(screen_ids)
    screens = [
        dataclasses.replace(s, screenshot_status="pending", screenshot_url=None)
        if s.id in ids
        else dataclasses.replace(s)
        for s in record.screens
    ]
    return _with_screens(record, screens)


def apply_results(record: AnalysisRecord, results: Iterable[ScreenshotResult]) -> AnalysisRecord:
    by_id = {r.screen_id: r for r in results}
    screens = []
    for screen in record.screens:
        result = by_id.get(screen.id)
        if result is None:
            screens.append(dataclasses.replace(screen))
        elif result.status == "ok" and result.url:
            screens.append(
                dataclasses.replace(
                    screen,
                    screenshot_status="ok",
                    screenshot_url=result.url,
                    last_screenshot_commit=record.commit_sha,
                    screenshot_source_hash=screen.source_hash,
                )
            )
        else:
            screens.append(
                dataclasses.replace(screen, screenshot_status="error", screenshot_url=None)
            )
    return _with_screens(record, screens)
