"""Stable identity keys for screens, flows and analyses.

An id stays the same across scans as long as its normalized inputs are the
same, so downstream diffing can match screens and flows between commits.

  screen    -> "screen_" + sha256(path \\0 route)[:16]
  flow      -> "flow_"   + sha256(path \\0 "{line}:{kind}:{name}")[:16]
  analysis  ->             sha256(repo \\0 branch \\0 commit)[:16]
"""

import hashlib
import re

_MULTI_SLASH = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """Forward slashes, no leading ``./`` or ``/``, no duplicate separators."""
    p = path.replace("\\", "/")
    p = _MULTI_SLASH.sub("/", p)
    while p.startswith("./"):
        p = p[2:]
    return p.lstrip("/")


def normalize_route(route: str) -> str:
    """Routes keep their leading slash; trailing slashes are dropped.

    CLI command routes (``"bin cmd"``) only have whitespace collapsed.
    """
    route = route.strip()
    if not route.startswith("/"):
        return " ".join(route.split())
    route = _MULTI_SLASH.sub("/", route)
    if len(route) > 1:
        route = route.rstrip("/")
    return route or "/"


def _digest(*parts: str) -> str:
    return hashlib.sha256("\0".join(parts).encode("utf-8")).hexdigest()[:16]


def screen_id(source_file: str, route_path: str) -> str:
    return "screen_" + _digest(normalize_path(source_file), normalize_route(route_path))


def flow_discriminator(line: int, kind: str, name: str) -> str:
    return f"{line}:{kind}:{name}"


def flow_id(source_file: str, discriminator: str) -> str:
    return "flow_" + _digest(normalize_path(source_file), discriminator)


def analysis_id(repo: str, branch: str, commit_sha: str) -> str:
    return _digest(repo, branch, commit_sha)
