"""React Router route parsing (JSX ``<Route>`` trees and object configs).

JSX route trees are read from the tree-sitter syntax tree of the routes
file. Files the grammar rejects are scanned tag by tag instead.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from ..syntax import SyntaxParser, node_text

# Elements that only wrap other routes; never screens on their own.
LAYOUT_WRAPPERS = frozenset(
    {"ProtectedRoute", "AdminRoute", "MainLayout", "AdminLayout", "ErrorBoundary", "Layout"}
)

_ROUTE_OPEN = re.compile(r"<Route\b(?!s)")
_ROUTE_CLOSE = "</Route>"
_PATH_ATTR = re.compile(r"""\bpath\s*=\s*(?:\{\s*)?["'`]([^"'`]*)["'`]""")
_INDEX_ATTR = re.compile(r"\bindex\b(?!\s*=\s*\{\s*false)")
_ELEMENT_ATTR = re.compile(r"\belement\s*=\s*\{")
_COMPONENT_ATTR = re.compile(r"\bComponent\s*=\s*\{\s*([A-Z][\w$]*)\s*\}")
_JSX_TAG = re.compile(r"<\s*([A-Z][\w$.]*)")
_FALLBACK_ATTR = re.compile(r"\bfallback\s*=\s*\{")
_OBJECT_ROUTE = re.compile(
    r"""\{\s*path\s*:\s*["'`]([^"'`]+)["'`]\s*,\s*(?:element\s*:\s*<\s*([A-Z][\w$]*)|Component\s*:\s*([A-Z][\w$]*))"""
)
_JSX_BASENAME = re.compile(r"""<(?:\w*Router)\b[^>]*\bbasename\s*=\s*\{?\s*["'`]([^"'`]+)["'`]""")
_CONFIG_BASENAME = re.compile(
    r"""createBrowserRouter\s*\([\s\S]*?\bbasename\s*:\s*["'`]([^"'`]+)["'`]"""
)


@dataclass
class RouteEntry:
    """One parsed route with its path joined to its ancestors'."""

    full_path: str
    component: Optional[str]
    start: int
    skip: bool


@dataclass
class _RawRoute:
    path: Optional[str]
    index: bool
    start: int
    end: int
    component: Optional[str]
    skip: bool


def _scan_tag_end(content: str, start: int) -> int:
    """Index of the ``>`` closing the tag opened at ``start`` (-1 if none).

    Braces and quotes inside attribute expressions are skipped so that
    ``element={<X />}`` does not end the tag early.
    """
    depth = 0
    quote: Optional[str] = None
    i = start + 1
    while i < len(content):
        c = content[i]
        if quote:
            if c == quote:
                quote = None
        elif c in "\"'`":
            quote = c
        elif c == "{":
            depth += 1
        elif c == "}":
            depth = max(depth - 1, 0)
        elif c == ">" and depth == 0:
            return i
        i += 1
    return -1


def _block_end(content: str, open_end: int) -> int:
    """End offset of a non-self-closing ``<Route>`` starting after ``open_end``."""
    depth = 1
    i = open_end + 1
    while depth > 0:
        close = content.find(_ROUTE_CLOSE, i)
        m = _ROUTE_OPEN.search(content, i)
        nested = m.start() if m else -1
        if close < 0:
            return len(content)
        if 0 <= nested < close:
            tag_end = _scan_tag_end(content, nested)
            if tag_end < 0:
                return len(content)
            if content[tag_end - 1] != "/":
                depth += 1
            i = tag_end + 1
            continue
        depth -= 1
        i = close + len(_ROUTE_CLOSE)
    return i


def _element_expression(open_tag: str) -> Optional[str]:
    m = _ELEMENT_ATTR.search(open_tag)
    if not m:
        return None
    depth = 1
    i = m.end()
    while i < len(open_tag) and depth:
        if open_tag[i] == "{":
            depth += 1
        elif open_tag[i] == "}":
            depth -= 1
        i += 1
    return open_tag[m.end() : i - 1]


def _strip_fallbacks(expr: str) -> str:
    """Drop ``fallback={...}`` props; their elements are placeholders."""
    while True:
        m = _FALLBACK_ATTR.search(expr)
        if not m:
            return expr
        depth = 1
        i = m.end()
        while i < len(expr) and depth:
            if expr[i] == "{":
                depth += 1
            elif expr[i] == "}":
                depth -= 1
            i += 1
        expr = expr[: m.start()] + expr[i:]


def _pick_component(tags: list[str]) -> tuple[Optional[str], bool]:
    if not tags or tags[0] == "Navigate":
        return None, True
    for tag in tags:
        if tag in LAYOUT_WRAPPERS or tag == "Suspense" or tag == "Fragment":
            continue
        return tag, False
    return None, True


def element_component(open_tag: str) -> tuple[Optional[str], bool]:
    """Return ``(component, skip)`` for a route's opening tag.

    Redirects (``<Navigate>``) are skipped. ``Suspense`` and layout wrappers
    are looked through to the first inner component; a wrapper with nothing
    inside it is layout-only and skipped.
    """
    expr = _element_expression(open_tag)
    if expr is None:
        m = _COMPONENT_ATTR.search(open_tag)
        return (m.group(1), False) if m else (None, True)
    return _pick_component([t.split(".")[-1] for t in _JSX_TAG.findall(_strip_fallbacks(expr))])


def _join(parent: str, path: str) -> str:
    if path.startswith("/"):
        joined = path
    else:
        joined = parent.rstrip("/") + "/" + path
    joined = re.sub(r"/{2,}", "/", joined)
    if len(joined) > 1:
        joined = joined.rstrip("/")
    return joined or "/"


def parse_jsx_routes(
    content: str, grammar: str = "tsx", parser: Optional[SyntaxParser] = None
) -> list[RouteEntry]:
    """Parse every ``<Route>`` in ``content``, nested routes included."""
    root = (parser or SyntaxParser()).parse(content, grammar)
    if root is None:
        return _scan_jsx_routes(content)
    return _tree_routes(root)


# -- syntax tree ----------------------------------------------------------


def _tree_routes(root: Any) -> list[RouteEntry]:
    entries: list[RouteEntry] = []
    stack = [(root, "/")]
    while stack:
        node, parent_path = stack.pop()
        tag = _route_tag(node)
        if tag is not None:
            entry = _tree_route(node, tag, parent_path)
            entries.append(entry)
            parent_path = entry.full_path
        stack.extend((child, parent_path) for child in reversed(node.named_children))
    return entries


def _route_tag(node: Any) -> Optional[Any]:
    """The opening tag of a ``<Route>`` element, else None."""
    if node.type == "jsx_self_closing_element":
        tag = node
    elif node.type == "jsx_element":
        tag = node.child_by_field_name("open_tag")
        if tag is None and node.named_children:
            tag = node.named_children[0]
    else:
        return None
    name = tag.child_by_field_name("name") if tag is not None else None
    return tag if name is not None and node_text(name) == "Route" else None


def _attributes(tag: Any) -> dict[str, Optional[Any]]:
    """Attribute name -> value node (None for bare flags like ``index``)."""
    attributes: dict[str, Optional[Any]] = {}
    for child in tag.named_children:
        if child.type != "jsx_attribute" or not child.named_children:
            continue
        parts = child.named_children
        attributes[node_text(parts[0])] = parts[1] if len(parts) > 1 else None
    return attributes


def _literal(value: Optional[Any]) -> Optional[str]:
    """``"x"``, ``{"x"}`` or a template without substitutions -> ``x``."""
    if value is not None and value.type == "jsx_expression" and len(value.named_children) == 1:
        value = value.named_children[0]
    if value is None or value.type not in ("string", "template_string"):
        return None
    if any(c.type == "template_substitution" for c in value.named_children):
        return None
    return node_text(value)[1:-1]


def _element_tags(value: Any) -> list[str]:
    """Capitalized JSX element names in source order, ``fallback`` props skipped."""
    tags = []
    stack = [value]
    while stack:
        node = stack.pop()
        if node.type == "jsx_attribute" and node.named_children:
            if node_text(node.named_children[0]) == "fallback":
                continue
        if node.type in ("jsx_opening_element", "jsx_self_closing_element"):
            name = node.child_by_field_name("name")
            text = node_text(name) if name is not None else ""
            if text[:1].isupper():
                tags.append(text.split(".")[-1])
        stack.extend(reversed(node.named_children))
    return tags


def _tree_route(node: Any, tag: Any, parent_path: str) -> RouteEntry:
    attributes = _attributes(tag)
    path = _literal(attributes.get("path"))
    is_index = False
    if path is None and "index" in attributes:
        flag = attributes["index"]
        is_index = flag is None or node_text(flag).replace(" ", "") != "{false}"

    if attributes.get("element") is not None:
        component, skip = _pick_component(_element_tags(attributes["element"]))
    else:
        value = attributes.get("Component")
        name = node_text(value).strip("{} \n") if value is not None else ""
        component, skip = (name, False) if name[:1].isupper() else (None, True)

    if path == "*" or (path is None and not is_index):
        skip = True
    full_path = parent_path if path is None or path == "*" else _join(parent_path, path)
    return RouteEntry(full_path, component, node.start_byte, skip)


# -- tag scanner ----------------------------------------------------------


def _scan_jsx_routes(content: str) -> list[RouteEntry]:
    raw: list[_RawRoute] = []
    for m in _ROUTE_OPEN.finditer(content):
        start = m.start()
        tag_end = _scan_tag_end(content, start)
        if tag_end < 0:
            continue
        open_tag = content[start : tag_end + 1]
        self_closing = content[tag_end - 1] == "/"
        end = tag_end + 1 if self_closing else _block_end(content, tag_end)

        path_m = _PATH_ATTR.search(open_tag)
        path = path_m.group(1) if path_m else None
        is_index = path is None and bool(_INDEX_ATTR.search(open_tag))
        component, skip = element_component(open_tag)
        if path == "*" or (path is None and not is_index):
            skip = True
        raw.append(_RawRoute(path, is_index, start, end, component, skip))

    # Parents always start before and end after their children.
    raw.sort(key=lambda r: (r.start, -(r.end - r.start)))
    entries: list[RouteEntry] = []
    resolved: list[tuple[_RawRoute, str]] = []
    for r in raw:
        parent_path = "/"
        best_span = None
        for candidate, full in resolved:
            if candidate.start < r.start and candidate.end >= r.end:
                span = candidate.end - candidate.start
                if best_span is None or span < best_span:
                    best_span = span
                    parent_path = full
        if r.path is None or r.path == "*":
            full_path = parent_path
        else:
            full_path = _join(parent_path, r.path)
        resolved.append((r, full_path))
        entries.append(RouteEntry(full_path, r.component, r.start, r.skip))
    return entries


def parse_object_routes(content: str) -> list[RouteEntry]:
    """Object route configs: ``{ path: "/x", element: <X /> }``."""
    entries = []
    for m in _OBJECT_ROUTE.finditer(content):
        path = m.group(1)
        component = m.group(2) or m.group(3)
        skip = path == "*" or component == "Navigate" or component in LAYOUT_WRAPPERS
        entries.append(RouteEntry(_join("/", path), component, m.start(), skip))
    return entries


def router_basename(content: str) -> Optional[str]:
    m = _JSX_BASENAME.search(content) or _CONFIG_BASENAME.search(content)
    if not m:
        return None
    base = m.group(1).strip().rstrip("/")
    return base if base.startswith("/") and base != "" else None


def apply_basename(route: str, basename: Optional[str]) -> str:
    if not basename:
        return route
    return basename if route == "/" else basename + route
