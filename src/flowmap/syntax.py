"""Tree-sitter parsing of JavaScript and TypeScript sources.

Usage:
    parser = SyntaxParser()
    syntax = parser.scan("src/App.tsx", content)
    if syntax is None:
        # Unsupported file type (.vue) or a source the grammar rejects;
        # callers fall back to their line scanners.

``FileSyntax`` carries what flow linking needs from a file: named
function definitions with the rows their bodies span, and the names
invoked or bound as handlers at each position. Rows are 0-based and
columns are byte offsets into the UTF-8 encoded line, as tree-sitter
reports them.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional

import tree_sitter
import tree_sitter_javascript
import tree_sitter_typescript

from .logging_config import get_logger

logger = get_logger(__name__)

# Extension -> grammar. tree-sitter-javascript parses JSX in .js files too.
GRAMMARS: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}

_FUNCTION_VALUES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)
_HOOK_WRAPPERS = frozenset({"useCallback", "React.useCallback"})
_NAMED_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})
_MEMBER_DEFINITIONS = frozenset({"pair", "public_field_definition", "field_definition"})


@dataclass(frozen=True)
class Definition:
    """A named function: ``column`` is just past the name, ``end_row`` closes the body."""

    name: str
    row: int
    column: int
    end_row: int


@dataclass(frozen=True)
class Reference:
    """A name used at a position. ``invoked`` is False for handler bindings
    such as ``onClick={save}``."""

    name: str
    row: int
    column: int
    invoked: bool = True


@dataclass
class FileSyntax:
    # First definition on each row, by row
    definitions: dict[int, Definition] = field(default_factory=dict)
    references: list[Reference] = field(default_factory=list)

    def names_in(
        self, first_row: int, column: int, last_row: int, bindings: bool = False
    ) -> set[str]:
        """Names referenced from ``(first_row, column)`` through ``last_row``."""
        start = (first_row, column)
        return {
            r.name
            for r in self.references
            if (r.invoked or bindings) and (r.row, r.column) >= start and r.row <= last_row
        }


def grammar_for(path: str) -> Optional[str]:
    return GRAMMARS.get(posixpath.splitext(path)[1].lower())


@lru_cache(maxsize=None)
def _language(grammar: str) -> Any:
    if grammar == "javascript":
        raw = tree_sitter_javascript.language()
    else:
        # tree-sitter-typescript ships language_typescript() and language_tsx()
        raw = getattr(tree_sitter_typescript, f"language_{grammar}")()
    return tree_sitter.Language(raw)


def node_text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text else ""


class SyntaxParser:
    """Parses JavaScript/TypeScript into trees and ``FileSyntax``.

    Parsers are created per call; ``Language`` objects are shared, so one
    instance is safe to use from extraction worker threads.
    """

    def parse(self, content: str, grammar: str) -> Optional[Any]:
        """Root node of ``content``, or None when the grammar reports errors."""
        try:
            source = content.encode("utf-8")
        except UnicodeEncodeError:
            return None
        parser = tree_sitter.Parser(_language(grammar))
        tree = parser.parse(source)
        if tree.root_node.has_error:
            return None
        return tree.root_node

    def scan(self, path: str, content: str) -> Optional[FileSyntax]:
        """Definitions and references of one file; None means use the line scanner."""
        grammar = grammar_for(path)
        if grammar is None:
            return None
        root = self.parse(content, grammar)
        if root is None:
            logger.debug(f"{path} does not parse as {grammar}; using the line scanner")
            return None
        return _collect(root)


def _collect(root: Any) -> FileSyntax:
    syntax = FileSyntax()
    stack = [root]
    while stack:
        node = stack.pop()
        name = _definition_name(node)
        if name is not None:
            row, column = name.start_point[0], name.end_point[1]
            current = syntax.definitions.get(row)
            if current is None or column < current.column:
                syntax.definitions[row] = Definition(
                    node_text(name), row, column, node.end_point[0]
                )

        reference = _reference(node)
        if reference is not None:
            syntax.references.append(reference)

        stack.extend(reversed(node.named_children))
    return syntax


def _definition_name(node: Any) -> Optional[Any]:
    kind = node.type
    if kind in _NAMED_DECLARATIONS:
        return node.child_by_field_name("name")
    if kind == "method_definition":
        name = node.child_by_field_name("name")
        return name if name is not None and name.type == "property_identifier" else None
    if kind == "variable_declarator":
        name = node.child_by_field_name("name")
        if name is not None and name.type == "identifier":
            return name if _is_function_value(node.child_by_field_name("value")) else None
        return None
    if kind in _MEMBER_DEFINITIONS:
        # pair: key, TS class field: name, JS class field: property
        for field_name in ("key", "name", "property"):
            name = node.child_by_field_name(field_name)
            if name is not None:
                break
        if name is not None and name.type == "property_identifier":
            return name if _is_function_value(node.child_by_field_name("value")) else None
    return None


def _is_function_value(value: Optional[Any]) -> bool:
    if value is None:
        return False
    if value.type in _FUNCTION_VALUES:
        return True
    if value.type == "call_expression":
        callee = value.child_by_field_name("function")
        return callee is not None and node_text(callee) in _HOOK_WRAPPERS
    return False


def _plain_name(node: Optional[Any]) -> Optional[Any]:
    """``save`` or ``this.save`` -> the ``save`` node; anything else -> None."""
    if node is None:
        return None
    if node.type == "identifier":
        return node
    if node.type == "member_expression":
        target = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if target is not None and target.type == "this" and prop is not None:
            return prop
    return None


def _reference(node: Any) -> Optional[Reference]:
    if node.type == "call_expression":
        name = _plain_name(node.child_by_field_name("function"))
        if name is not None:
            return Reference(node_text(name), name.start_point[0], name.start_point[1])
        return None
    if node.type == "jsx_expression" and node.parent is not None:
        if node.parent.type != "jsx_attribute" or len(node.named_children) != 1:
            return None
        name = _plain_name(node.named_children[0])
        if name is not None:
            return Reference(node_text(name), name.start_point[0], name.start_point[1], False)
    return None
