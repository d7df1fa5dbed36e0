"""Code flow entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

FlowKind = Literal["ui-event", "function-call", "api-call", "db-query"]

FLOW_KINDS: tuple[str, ...] = ("ui-event", "function-call", "api-call", "db-query")


@dataclass
class CodeFlow:
    """A classified unit of behavior with outgoing call edges.

    ``symbol`` is the function name defined on the flow's line, if any; it is
    the key other flows use to link to this one.
    """

    id: str
    kind: FlowKind
    name: str
    source_file: str
    line: int
    snippet: str = ""
    calls: list[str] = field(default_factory=list)
    symbol: Optional[str] = None

    def sort_key(self) -> tuple[str, int, str, str]:
        return (self.source_file, self.line, self.kind, self.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "name": self.name,
            "sourceFile": self.source_file,
            "line": self.line,
            "snippet": self.snippet,
            "calls": list(self.calls),
            "symbol": self.symbol,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CodeFlow":
        return cls(
            id=data["id"],
            kind=data["kind"],
            name=data.get("name", ""),
            source_file=data["sourceFile"],
            line=int(data["line"]),
            snippet=data.get("snippet", ""),
            calls=list(data.get("calls") or []),
            symbol=data.get("symbol"),
        )


@dataclass
class FlowExtraction:
    """Flows for a set of screens plus what the traversal could not cover."""

    flows_by_screen: dict[str, list[str]] = field(default_factory=dict)
    flows: list[CodeFlow] = field(default_factory=list)
    truncations: list[dict[str, Any]] = field(default_factory=list)
    skipped_files: list[dict[str, Any]] = field(default_factory=list)
    files_analyzed: int = 0

    @property
    def truncated(self) -> bool:
        return bool(self.truncations)
