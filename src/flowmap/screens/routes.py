"""File-system route conventions (Next.js app/pages routers, Nuxt pages)."""

from __future__ import annotations

import re
from typing import Optional

_APP_PAGE = re.compile(r"^(?:src/)?app/(?:(.*)/)?page\.(?:tsx|ts|jsx|js)$")
_PAGES_FILE = re.compile(r"^(?:src/)?pages/(.+)\.(?:tsx|ts|jsx|js)$")
_NUXT_FILE = re.compile(r"^(?:src/)?pages/(.+)\.vue$")

_OPTIONAL_CATCH_ALL = re.compile(r"^\[\[\.\.\.([^\]]+)\]\]$")
_CATCH_ALL = re.compile(r"^\[\.\.\.([^\]]+)\]$")
_DYNAMIC = re.compile(r"^\[([^\]]+)\]$")

# Next.js files under pages/ that never render a route of their own.
_PAGES_SPECIAL = frozenset({"_app", "_document", "_error", "_middleware"})


def convert_segment(segment: str) -> str:
    """Map one file-system segment to its route form.

    ``[id]`` -> ``:id``; ``[...slug]`` and ``[[...slug]]`` -> ``:slug*``.
    """
    m = _OPTIONAL_CATCH_ALL.match(segment) or _CATCH_ALL.match(segment)
    if m:
        return f":{m.group(1)}*"
    m = _DYNAMIC.match(segment)
    if m:
        return f":{m.group(1)}"
    return segment


def _join(segments: list[str]) -> str:
    return "/" + "/".join(segments) if segments else "/"


def app_router_route(path: str) -> Optional[str]:
    """Route for an app-router ``page`` file, or None if ``path`` is not one.

    Route groups ``(name)`` and parallel slots ``@name`` do not contribute a
    segment.
    """
    m = _APP_PAGE.match(path)
    if not m:
        return None
    segments = []
    for seg in (m.group(1) or "").split("/"):
        if not seg or (seg.startswith("(") and seg.endswith(")")) or seg.startswith("@"):
            continue
        segments.append(convert_segment(seg))
    return _join(segments)


def _pages_route(stem: str) -> Optional[str]:
    parts = [p for p in stem.split("/") if p]
    if not parts or parts[-1] in _PAGES_SPECIAL:
        return None
    if parts[-1] == "index":
        parts = parts[:-1]
    return _join([convert_segment(p) for p in parts])


def pages_router_route(path: str) -> Optional[str]:
    m = _PAGES_FILE.match(path)
    if not m:
        return None
    stem = m.group(1)
    if stem == "api" or stem.startswith("api/"):
        return None
    return _pages_route(stem)


def nuxt_route(path: str) -> Optional[str]:
    m = _NUXT_FILE.match(path)
    if not m:
        return None
    return _pages_route(m.group(1))


def name_from_route(route: str) -> str:
    """Display name from the last route segment (``/`` is ``Home``)."""
    segments = [s for s in route.split("/") if s]
    if not segments:
        return "Home"
    last = segments[-1].lstrip(":").rstrip("*").replace("-", " ").replace("_", " ")
    return last[:1].upper() + last[1:] if last else "Home"
