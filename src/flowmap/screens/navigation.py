"""Static navigation target extraction.

Light syntactic scanning only: a call site or link attribute counts when its
target is a literal absolute path. Interpolated template literals and
computed targets are dropped rather than guessed.
"""

import re

_TARGET = r"""(?:"([^"\n]+)"|'([^'\n]+)'|`([^`$\n]+)`)"""

NAVIGATION_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\brouter\.(?:push|replace)\s*\(\s*" + _TARGET),
    re.compile(r"\bhistory\.(?:push|replace)\s*\(\s*" + _TARGET),
    re.compile(r"\bnavigate\s*\(\s*" + _TARGET),
    re.compile(r"\bnavigateTo\s*\(\s*" + _TARGET),
    re.compile(r"\bredirect\s*\(\s*" + _TARGET),
    re.compile(r"\bhref\s*=\s*\{?\s*" + _TARGET),
    re.compile(r"<Link\b[^>]*?\b(?:to|href)\s*=\s*\{?\s*" + _TARGET),
    re.compile(r"<NavLink\b[^>]*?\bto\s*=\s*\{?\s*" + _TARGET),
    re.compile(r"<Navigate\b[^>]*?\bto\s*=\s*\{?\s*" + _TARGET),
)


def _is_internal(target: str) -> bool:
    return target.startswith("/") and not target.startswith("//")


def _clean(target: str) -> str:
    for sep in ("?", "#"):
        idx = target.find(sep)
        if idx > 0:
            target = target[:idx]
    if len(target) > 1:
        target = target.rstrip("/")
    return target or "/"


def extract_navigation_links(content: str) -> list[str]:
    """Return the sorted set of literal internal navigation targets."""
    links: set[str] = set()
    for pattern in NAVIGATION_PATTERNS:
        for match in pattern.finditer(content):
            target = next((g for g in match.groups() if g is not None), None)
            if target and _is_internal(target.strip()):
                links.add(_clean(target.strip()))
    return sorted(links)
