"""Screen discovery across framework conventions.

Strategy order for one tree:

1. The primary framework's strategy, then the strategies of the other
   detected candidates by descending score. The first one that yields
   screens wins.
2. React fallbacks when the ``react`` marker is present: state-driven view
   switches (``/view/<name>``), then hash routing (``/hash/<name>``).
3. A generic heuristic over ``screens/``, ``pages/``, ``views/`` and
   ``routes/`` directories.

Screens without a detectable route are excluded; nothing is defaulted.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Mapping, Optional

from ..detection import FrameworkDetectionResult, parse_package_json
from ..graph.ids import normalize_path, normalize_route, screen_id
from ..imports import imported_bindings, is_code_file, resolve_import
from ..logging_config import get_logger
from ..syntax import SyntaxParser, grammar_for
from .models import Screen
from .navigation import extract_navigation_links
from .react_router import (
    apply_basename,
    parse_jsx_routes,
    parse_object_routes,
    router_basename,
)
from .routes import app_router_route, name_from_route, nuxt_route, pages_router_route

logger = get_logger(__name__)

_VIEW_STATE = re.compile(
    r"\[\s*(currentView|currentPage|activeView|activePage|view|page)\s*,\s*set\w*\s*\]"
    r"\s*=\s*(?:React\.)?useState\b"
)
_VIEW_CASE = re.compile(
    r"""case\s+["']([^"'\n]+)["']\s*:\s*(?:\{\s*)?return\s*\(?\s*<\s*([A-Z][\w$]*)"""
)
_VALID_PAGES = re.compile(r"\bvalidPages\s*=\s*\[([^\]]*)\]")
_CLI_MARKERS = ("program.command(", "cmd.command(", "new Command(")
_CLI_COMMAND = re.compile(r"""\.command\s*\(\s*["'`]([^"'`\n]+)["'`]""")
_HEURISTIC_DIR = re.compile(
    r"(?:^|/)(screens?|pages?|views?|routes?)/([^/]+)\.(?:tsx|ts|jsx|js|vue)$", re.IGNORECASE
)
_NAME_SUFFIX = re.compile(r"(?:Screen|Page|View)$")


class ScreenExtractor:
    """Produces the ordered screen list for one snapshot."""

    def __init__(self, parser: Optional[SyntaxParser] = None) -> None:
        self.parser = parser or SyntaxParser()
        self._strategies: dict[str, Callable[["_Tree"], list[Screen]]] = {
            "nextjs-app-router": self._next_app_router,
            "nextjs-pages-router": self._next_pages_router,
            "nuxt": self._nuxt,
            "react-router": self._react_router,
            "cli-commander": self._cli_commander,
        }

    def extract(
        self,
        paths: Iterable[str],
        contents: Mapping[str, str],
        detection: FrameworkDetectionResult,
        hashes: Optional[Mapping[str, str]] = None,
    ) -> list[Screen]:
        """Discover screens.

        Args:
            paths: Every blob path of the tree
            contents: Decoded text of the files that were fetched
            detection: Framework detection for the same tree
            hashes: Content hash per path, copied onto each screen

        Returns:
            Screens sorted by (route path, source file), unique per pair
        """
        tree = _Tree(sorted({normalize_path(p) for p in paths}), contents)

        screens: list[Screen] = []
        order = ([detection.primary] if detection.primary else []) + [
            name for name in detection.ranked() if name != detection.primary
        ]
        for framework in order:
            strategy = self._strategies.get(framework)
            if strategy is None:
                continue
            screens = strategy(tree)
            if screens:
                logger.debug(f"{framework}: {len(screens)} screens")
                break

        if not screens and "react" in detection.detected:
            screens = self._state_views(tree) or self._hash_views(tree)

        if not screens:
            logger.info("No screens from framework rules, using directory heuristic")
            screens = self._heuristic(tree)

        return _finalize(screens, tree, hashes or {})

    # -- file-system routers ------------------------------------------------

    def _file_routes(
        self, tree: "_Tree", route_for: Callable[[str], Optional[str]], framework: str
    ) -> list[Screen]:
        screens = []
        for path in tree.paths:
            route = route_for(path)
            if route is None:
                continue
            screens.append(_screen(name_from_route(route), route, path, "page", framework))
        return screens

    def _next_app_router(self, tree: "_Tree") -> list[Screen]:
        return self._file_routes(tree, app_router_route, "nextjs-app-router")

    def _next_pages_router(self, tree: "_Tree") -> list[Screen]:
        return self._file_routes(tree, pages_router_route, "nextjs-pages-router")

    def _nuxt(self, tree: "_Tree") -> list[Screen]:
        return self._file_routes(tree, nuxt_route, "nuxt")

    # -- code-defined routers -----------------------------------------------

    def _react_router(self, tree: "_Tree") -> list[Screen]:
        screens = []
        for path in tree.paths:
            content = tree.contents.get(path)
            if not content or not is_code_file(path):
                continue
            has_jsx = "<Route" in content
            has_objects = "path:" in content and ("element:" in content or "Component:" in content)
            if not has_jsx and not has_objects:
                continue
            entries = []
            if has_jsx:
                grammar = grammar_for(path) or "tsx"
                entries = parse_jsx_routes(content, grammar, self.parser)
            if has_objects:
                entries.extend(parse_object_routes(content))
            if not entries:
                continue
            basename = router_basename(content)
            bindings = imported_bindings(content)
            for entry in entries:
                if entry.skip:
                    continue
                route = apply_basename(entry.full_path, basename)
                source = tree.resolve_component(entry.component, bindings, path)
                screens.append(
                    _screen(
                        _component_name(entry.component) or name_from_route(route),
                        route,
                        source,
                        "page",
                        "react-router",
                    )
                )
        return screens

    def _cli_commander(self, tree: "_Tree") -> list[Screen]:
        bin_name = _bin_name(tree.contents.get("package.json"))
        screens = []
        for path in tree.paths:
            content = tree.contents.get(path)
            if not content or not is_code_file(path):
                continue
            if not any(marker in content for marker in _CLI_MARKERS):
                continue
            for m in _CLI_COMMAND.finditer(content):
                words = m.group(1).split()
                command = words[0] if words else ""
                if not command or command[0] in "<[":
                    continue
                name = " ".join(part.capitalize() for part in re.split(r"[-_:]", command) if part)
                screens.append(
                    _screen(
                        name or command,
                        f"{bin_name} {command}",
                        path,
                        "cli-command",
                        "cli-commander",
                    )
                )
        return screens

    # -- react fallbacks ----------------------------------------------------

    def _state_views(self, tree: "_Tree") -> list[Screen]:
        app_file = tree.app_file()
        if app_file is None:
            return []
        content = tree.contents[app_file]
        if not _VIEW_STATE.search(content):
            return []
        bindings = imported_bindings(content)
        screens = []
        for m in _VIEW_CASE.finditer(content):
            view, component = m.group(1).strip(), m.group(2)
            route = normalize_route(f"/view/{view}")
            source = tree.resolve_component(component, bindings, app_file)
            name = _component_name(component) or name_from_route(route)
            screens.append(_screen(name, route, source, "view", "react-state"))
        return screens

    def _hash_views(self, tree: "_Tree") -> list[Screen]:
        app_file = tree.app_file()
        if app_file is None:
            return []
        m = _VALID_PAGES.search(tree.contents[app_file])
        if not m:
            return []
        screens = []
        for item in m.group(1).split(","):
            page = item.strip().strip("\"'` ")
            if not page or not re.fullmatch(r"[\w-]+", page):
                continue
            route = f"/hash/{page}"
            screens.append(_screen(name_from_route(route), route, app_file, "view", "react-hash"))
        return screens

    # -- generic heuristic --------------------------------------------------

    def _heuristic(self, tree: "_Tree") -> list[Screen]:
        screens = []
        for path in tree.paths:
            if "components" in path.lower().split("/")[:-1]:
                continue
            m = _HEURISTIC_DIR.search(path)
            if not m:
                continue
            directory, stem = m.group(1).lower(), m.group(2)
            if stem.startswith("_") or stem.startswith("."):
                continue
            slug = _NAME_SUFFIX.sub("", stem).lower()
            route = "/" if slug in ("", "index") else f"/{slug}"
            kind = "view" if directory.startswith("view") else "screen"
            name = _NAME_SUFFIX.sub("", stem) or stem
            screens.append(_screen(name[:1].upper() + name[1:], route, path, kind, "heuristic"))
        return screens


class _Tree:
    """Paths plus fetched contents, with component lookup helpers."""

    def __init__(self, paths: list[str], contents: Mapping[str, str]) -> None:
        self.paths = paths
        self.contents = {normalize_path(k): v for k, v in contents.items()}
        self.known = set(paths) | set(self.contents)

    def app_file(self) -> Optional[str]:
        for path in self.paths:
            if path.rsplit("/", 1)[-1] in ("App.tsx", "App.jsx") and path in self.contents:
                return path
        return None

    def resolve_component(
        self, component: Optional[str], bindings: Mapping[str, str], fallback: str
    ) -> str:
        """File defining ``component`` if it is imported and in the tree."""
        if component and component in bindings:
            resolved = resolve_import(bindings[component], fallback, self.known)
            if resolved:
                return resolved
        return fallback


def _screen(name: str, route: str, source_file: str, kind: str, framework: str) -> Screen:
    route = normalize_route(route)
    source_file = normalize_path(source_file)
    return Screen(
        id=screen_id(source_file, route),
        name=name,
        route_path=route,
        source_file=source_file,
        kind=kind,
        framework=framework,
    )


def _component_name(component: Optional[str]) -> Optional[str]:
    if not component:
        return None
    return _NAME_SUFFIX.sub("", component) or component


def _bin_name(package_text: Optional[str]) -> str:
    package = parse_package_json(package_text) or {}
    bin_field = package.get("bin")
    if isinstance(bin_field, dict) and bin_field:
        return str(next(iter(bin_field)))
    name = package.get("name")
    if isinstance(name, str) and name:
        return name.rsplit("/", 1)[-1]
    return "cli"


def _finalize(screens: list[Screen], tree: _Tree, hashes: Mapping[str, str]) -> list[Screen]:
    seen: set[tuple[str, str]] = set()
    unique = []
    for screen in screens:
        key = (screen.source_file, screen.route_path)
        if key in seen:
            continue
        seen.add(key)
        content = tree.contents.get(screen.source_file)
        if content and screen.kind != "cli-command":
            screen.navigates_to = extract_navigation_links(content)
        screen.source_hash = hashes.get(screen.source_file)
        unique.append(screen)
    unique.sort(key=Screen.sort_key)
    return unique
