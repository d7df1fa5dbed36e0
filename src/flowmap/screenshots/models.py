"""Screenshot request and result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

CaptureStatus = Literal["ok", "error"]


@dataclass(frozen=True)
class ScreenshotTarget:
    id: str
    name: str
    path: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "path": self.path}


@dataclass(frozen=True)
class CaptureOutcome:
    """What a capture provider reports for one URL."""

    status: CaptureStatus
    url: Optional[str] = None
    error: Optional[str] = None
    retryable: bool = True


@dataclass(frozen=True)
class ScreenshotResult:
    screen_id: str
    status: CaptureStatus
    url: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"screenId": self.screen_id, "status": self.status}
        if self.url is not None:
            data["url"] = self.url
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class CaptureResponse:
    """Partial success is the normal case; ``captured < total`` is not an error."""

    captured: int = 0
    total: int = 0
    results: list[ScreenshotResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "captured": self.captured,
            "total": self.total,
            "results": [r.to_dict() for r in self.results],
        }
