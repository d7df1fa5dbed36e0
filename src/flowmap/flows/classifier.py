"""Per-line flow classification.

First match wins, in priority order: data access, network client, UI event
binding, named non-component definition. A named definition on a line that
matched an earlier category becomes that flow's symbol.

Definitions come from the syntax tree when the caller has one
(``flowmap.syntax``) and from the line patterns below otherwise.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_STR = r"""["'`]([^"'`\n]+)["'`]"""
_IDENT = r"[A-Za-z_$][\w$]*"

# Data access
_SUPABASE = re.compile(r"\bsupabase\s*\.\s*from\s*\(\s*" + _STR)
_PRISMA = re.compile(r"\bprisma\s*\.\s*(\w+)\s*\.\s*(\w+)\s*\(")
_SQL = re.compile(r"\.\s*(?:query|execute)\s*\(\s*" + _STR)
_COLLECTION = re.compile(r"\bdb\s*\.\s*collection\s*\(\s*" + _STR)
_KNEX = re.compile(r"\bknex\s*\(\s*" + _STR)
_TABLE_OP = re.compile(
    r"\.\s*(select|insert|insertOne|insertMany|update|updateOne|updateMany|upsert|"
    r"delete|deleteOne|deleteMany|del|find|findOne)\s*\("
)

# Network clients
_FETCH = re.compile(r"(?:\$|\b)fetch\s*\(\s*" + _STR)
_USE_FETCH = re.compile(r"\buseFetch\s*\(\s*" + _STR)
_AXIOS_VERB = re.compile(r"\baxios\s*\.\s*(get|post|put|patch|delete|head|options)\s*\(\s*" + _STR)
_AXIOS_CALL = re.compile(r"\baxios\s*\(\s*" + _STR)
_KY_VERB = re.compile(r"\bky\s*\.\s*(get|post|put|patch|delete|head)\s*\(\s*" + _STR)
_METHOD = re.compile(r"""\bmethod\s*:\s*["'`](\w+)["'`]""")

# UI bindings
_JSX_EVENT = re.compile(
    r"\b(onClick|onSubmit|onChange|onKeyPress|onKeyDown|onFocus|onBlur|onPress|onTouchStart)"
    r"\s*=\s*\{"
)
_VUE_EVENT = re.compile(
    r"""(?:@|\bv-on:)(click|submit|change|input|keydown|keypress|focus|blur)\b[\w.]*\s*=\s*["']"""
)

# Named definitions
_NOT_METHODS = frozenset(
    {"if", "for", "while", "switch", "catch", "function", "return", "with", "else", "do", "super"}
)
_DEFINITIONS: tuple[re.Pattern, ...] = (
    re.compile(r"\bfunction\s*\*?\s*(" + _IDENT + r")\s*(?:<[^>]*>)?\s*\("),
    re.compile(
        r"\b(?:const|let|var)\s+(" + _IDENT + r")\s*(?::[^=]+)?=\s*(?:async\s+)?"
        r"(?:\([^)]*\)|" + _IDENT + r")\s*(?::\s*[^=]+)?=>"
    ),
    re.compile(r"\b(?:const|let|var)\s+(" + _IDENT + r")\s*=\s*(?:async\s+)?function\b"),
    re.compile(r"\b(?:const|let|var)\s+(" + _IDENT + r")\s*=\s*(?:React\.)?useCallback\s*\("),
    re.compile(
        r"^\s*(" + _IDENT + r")\s*:\s*(?:async\s+)?(?:function\b|\([^)]*\)\s*=>|" + _IDENT + r"\s*=>)"
    ),
    re.compile(
        r"^\s*(?:(?:public|private|protected|static|async|override)\s+)*(?:get\s+|set\s+)?"
        r"(" + _IDENT + r")\s*\([^)]*\)\s*(?::\s*[^{;]+)?\{\s*$"
    ),
)

# Default for classify_line: search the line for a definition
_FIND: tuple[str, int] = ("", -1)

SNIPPET_LIMIT = 200
SQL_NAME_LIMIT = 60

_OP_NAMES = {
    "select": "SELECT",
    "find": "SELECT",
    "findOne": "SELECT",
    "findMany": "SELECT",
    "findUnique": "SELECT",
    "findFirst": "SELECT",
    "count": "SELECT",
    "aggregate": "SELECT",
    "insert": "INSERT",
    "insertOne": "INSERT",
    "insertMany": "INSERT",
    "create": "INSERT",
    "createMany": "INSERT",
    "update": "UPDATE",
    "updateOne": "UPDATE",
    "updateMany": "UPDATE",
    "upsert": "UPSERT",
    "delete": "DELETE",
    "deleteOne": "DELETE",
    "deleteMany": "DELETE",
    "del": "DELETE",
}


@dataclass(frozen=True)
class LineMatch:
    kind: str
    name: str
    symbol: Optional[str] = None
    # Column just past the defined name; invocations are searched after it.
    body_start: int = 0


def find_definition(line: str) -> Optional[tuple[str, int]]:
    """Return ``(name, column)`` of a named definition on ``line``.

    ``column`` is just past the defined name; the definition's body (and any
    recursive call) starts after it.
    """
    for pattern in _DEFINITIONS:
        m = pattern.search(line)
        if m and m.group(1) not in _NOT_METHODS:
            return m.group(1), m.end(1)
    return None


def _table_op(line: str, default: str = "SELECT") -> str:
    m = _TABLE_OP.search(line)
    return _OP_NAMES.get(m.group(1), default) if m else default


def _data_access(line: str) -> Optional[str]:
    m = _SUPABASE.search(line)
    if m:
        return f"{_table_op(line[m.end():])} {m.group(1)}"
    m = _PRISMA.search(line)
    if m:
        op = _OP_NAMES.get(m.group(2), m.group(2).upper())
        return f"{op} {m.group(1)}"
    m = _SQL.search(line)
    if m:
        return m.group(1).strip()[:SQL_NAME_LIMIT]
    m = _COLLECTION.search(line)
    if m:
        return f"{_table_op(line[m.end():])} {m.group(1)}"
    m = _KNEX.search(line)
    if m:
        return f"{_table_op(line[m.end():])} {m.group(1)}"
    return None


def _network(line: str) -> Optional[str]:
    method_m = _METHOD.search(line)
    explicit = method_m.group(1).upper() if method_m else None
    for pattern in (_FETCH, _USE_FETCH, _AXIOS_CALL):
        m = pattern.search(line)
        if m:
            return f"{explicit or 'GET'} {m.group(1)}"
    for pattern in (_AXIOS_VERB, _KY_VERB):
        m = pattern.search(line)
        if m:
            return f"{m.group(1).upper()} {m.group(2)}"
    return None


def _ui_event(line: str) -> Optional[str]:
    m = _JSX_EVENT.search(line)
    if m:
        return m.group(1)
    m = _VUE_EVENT.search(line)
    if m:
        return f"@{m.group(1)}"
    return None


def is_comment(line: str) -> bool:
    stripped = line.lstrip()
    return stripped.startswith(("//", "/*", "*", "<!--"))


def is_component(name: str) -> bool:
    """PascalCase definitions are components (or constructors) that render."""
    return name[:1].isupper()


def classify_line(
    line: str, definition: Optional[tuple[str, int]] = _FIND
) -> Optional[LineMatch]:
    """Classify one source line; None when nothing on it is a flow.

    ``definition`` is the ``(name, column)`` defined on the line when the
    caller already knows it from a syntax tree (None for no definition);
    by default the line is searched for one.

    A component definition is not a flow on its own; it only names the flow
    it shares a line with.
    """
    if not line.strip() or is_comment(line):
        return None

    if definition is _FIND:
        definition = find_definition(line)
    symbol, body_start = definition if definition else (None, 0)

    name = _data_access(line)
    if name is not None:
        return LineMatch("db-query", name, symbol, body_start)
    name = _network(line)
    if name is not None:
        return LineMatch("api-call", name, symbol, body_start)
    name = _ui_event(line)
    if name is not None:
        return LineMatch("ui-event", name, symbol, body_start)
    if symbol is not None and not is_component(symbol):
        return LineMatch("function-call", symbol, symbol, body_start)
    return None


def snippet(line: str) -> str:
    text = line.strip()
    return text if len(text) <= SNIPPET_LIMIT else text[: SNIPPET_LIMIT - 3] + "..."
