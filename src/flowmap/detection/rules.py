"""Framework signature rules.

Each rule matches one kind of evidence and contributes a fixed weight to one
or more candidates. Weights follow specificity:

    config file          3.0   next.config.js, nuxt.config.ts
    package dependency   2.5   "next", "nuxt", "react-router-dom", "commander"
    directory convention 1.5   app/**/page.tsx, pages/**/*.vue
    bin + commander      1.0   package.json "bin" with commander call sites
    content pattern      1.0   createBrowserRouter, program.command(
    react marker         1.0   "react" / "react-dom" dependency
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from ..logging_config import get_logger

logger = get_logger(__name__)

CONFIG_WEIGHT = 3.0
DEPENDENCY_WEIGHT = 2.5
DIRECTORY_WEIGHT = 1.5
BIN_WEIGHT = 1.0
CONTENT_WEIGHT = 1.0
MARKER_WEIGHT = 1.0


@dataclass
class DetectionContext:
    """Evidence the rules look at, built once per detection run."""

    paths: list[str]
    contents: Mapping[str, str]
    dependencies: set[str] = field(default_factory=set)
    has_bin: bool = False

    @classmethod
    def build(cls, paths: list[str], contents: Mapping[str, str]) -> "DetectionContext":
        ctx = cls(paths=sorted(set(paths)), contents=contents)
        package = parse_package_json(contents.get("package.json"))
        if package:
            for section in ("dependencies", "devDependencies", "peerDependencies"):
                deps = package.get(section)
                if isinstance(deps, dict):
                    ctx.dependencies.update(k for k, v in deps.items() if isinstance(v, str))
            ctx.has_bin = bool(package.get("bin"))
        return ctx

    def any_path(self, pattern: re.Pattern) -> bool:
        return any(pattern.search(p) for p in self.paths)

    def any_content(self, needles: tuple[str, ...]) -> bool:
        for path in self.paths:
            text = self.contents.get(path)
            if text and any(n in text for n in needles):
                return True
        return False


@dataclass(frozen=True)
class Rule:
    name: str
    frameworks: tuple[str, ...]
    weight: float
    matches: Callable[[DetectionContext], bool]


def parse_package_json(text: Optional[str]) -> Optional[dict[str, Any]]:
    """Parse package.json content; malformed manifests count as absent."""
    if not text:
        return None
    try:
        data = json.loads(text)
    except ValueError as e:
        logger.warning(f"Failed to parse package.json: {e}")
        return None
    return data if isinstance(data, dict) else None


def _path_rule(pattern: str) -> Callable[[DetectionContext], bool]:
    compiled = re.compile(pattern)
    return lambda ctx: ctx.any_path(compiled)


def _dep_rule(*names: str) -> Callable[[DetectionContext], bool]:
    return lambda ctx: any(n in ctx.dependencies for n in names)


def _content_rule(*needles: str) -> Callable[[DetectionContext], bool]:
    return lambda ctx: ctx.any_content(needles)


_SRC = r"(?:^|^src/)"
ROUTER_CONTENT = ("createBrowserRouter", "<Routes>", "<Route ")
COMMANDER_CONTENT = ("program.command(", "new Command(")

RULES: tuple[Rule, ...] = (
    Rule(
        "config-file:next.config",
        ("nextjs-app-router", "nextjs-pages-router"),
        CONFIG_WEIGHT,
        _path_rule(r"(?:^|/)next\.config\.(?:js|mjs|cjs|ts)$"),
    ),
    Rule(
        "config-file:nuxt.config",
        ("nuxt",),
        CONFIG_WEIGHT,
        _path_rule(r"(?:^|/)nuxt\.config\.(?:js|mjs|ts)$"),
    ),
    Rule(
        "dependency:next",
        ("nextjs-app-router", "nextjs-pages-router"),
        DEPENDENCY_WEIGHT,
        _dep_rule("next"),
    ),
    Rule("dependency:nuxt", ("nuxt",), DEPENDENCY_WEIGHT, _dep_rule("nuxt")),
    Rule(
        "dependency:react-router",
        ("react-router",),
        DEPENDENCY_WEIGHT,
        _dep_rule("react-router-dom", "react-router"),
    ),
    Rule("dependency:commander", ("cli-commander",), DEPENDENCY_WEIGHT, _dep_rule("commander")),
    Rule(
        "bin:commander",
        ("cli-commander",),
        BIN_WEIGHT,
        lambda ctx: ctx.has_bin and ctx.any_content(COMMANDER_CONTENT),
    ),
    Rule(
        "directory:app-router",
        ("nextjs-app-router",),
        DIRECTORY_WEIGHT,
        _path_rule(_SRC + r"app/(?:.+/)?page\.(?:tsx|ts|jsx|js)$"),
    ),
    Rule(
        "directory:pages-router",
        ("nextjs-pages-router",),
        DIRECTORY_WEIGHT,
        _path_rule(_SRC + r"pages/.+\.(?:tsx|ts|jsx|js)$"),
    ),
    Rule(
        "directory:nuxt-pages",
        ("nuxt",),
        DIRECTORY_WEIGHT,
        _path_rule(_SRC + r"pages/.+\.vue$"),
    ),
    Rule("content:router", ("react-router",), CONTENT_WEIGHT, _content_rule(*ROUTER_CONTENT)),
    Rule(
        "content:commander",
        ("cli-commander",),
        CONTENT_WEIGHT,
        _content_rule(*COMMANDER_CONTENT),
    ),
    Rule("marker:react", ("react",), MARKER_WEIGHT, _dep_rule("react", "react-dom")),
)
