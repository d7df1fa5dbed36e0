"""Framework detection result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

# Fixed candidate order; doubles as the tie-break order.
CANDIDATES: tuple[str, ...] = (
    "nextjs-app-router",
    "nextjs-pages-router",
    "nuxt",
    "react-router",
    "cli-commander",
    "react",
)

# Marker candidates inform fallbacks but never become primary.
MARKERS = frozenset({"react"})


@dataclass(frozen=True)
class FrameworkSignal:
    """One matched detection rule."""

    framework: str
    rule: str
    weight: float


@dataclass
class FrameworkDetectionResult:
    detected: dict[str, float] = field(default_factory=dict)
    primary: Optional[str] = None
    confidence: float = 0.0
    signals: list[FrameworkSignal] = field(default_factory=list)

    def ranked(self) -> list[str]:
        """Detected candidates by descending score, ties in candidate order."""
        return sorted(
            self.detected,
            key=lambda name: (-self.detected[name], CANDIDATES.index(name)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "detected": {name: self.detected[name] for name in self.ranked()},
            "primary": self.primary,
            "confidence": self.confidence,
            "signals": [
                {"framework": s.framework, "rule": s.rule, "weight": s.weight}
                for s in self.signals
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FrameworkDetectionResult":
        return cls(
            detected={k: float(v) for k, v in (data.get("detected") or {}).items()},
            primary=data.get("primary"),
            confidence=float(data.get("confidence", 0.0)),
            signals=[
                FrameworkSignal(s["framework"], s["rule"], float(s["weight"]))
                for s in data.get("signals") or []
            ],
        )
