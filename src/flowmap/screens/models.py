"""Screen entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

ScreenKind = Literal["page", "screen", "view", "cli-command"]
ScreenshotStatus = Literal["none", "pending", "ok", "error"]

SCREEN_KINDS: tuple[str, ...] = ("page", "screen", "view", "cli-command")
SCREENSHOT_STATUSES: tuple[str, ...] = ("none", "pending", "ok", "error")


@dataclass
class Screen:
    """A reachable UI surface or CLI command.

    ``screenshot_url`` is set only while ``screenshot_status == "ok"``.
    ``last_screenshot_commit`` advances only on a successful capture, and
    ``screenshot_source_hash`` records the source hash that capture rendered.
    """

    id: str
    name: str
    route_path: str
    source_file: str
    kind: ScreenKind = "page"
    flow_ids: list[str] = field(default_factory=list)
    navigates_to: list[str] = field(default_factory=list)
    framework: str = ""
    source_hash: Optional[str] = None
    last_analyzed_commit: Optional[str] = None
    screenshot_status: ScreenshotStatus = "none"
    screenshot_url: Optional[str] = None
    last_screenshot_commit: Optional[str] = None
    screenshot_source_hash: Optional[str] = None

    def sort_key(self) -> tuple[str, str]:
        return (self.route_path, self.source_file)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "routePath": self.route_path,
            "sourceFile": self.source_file,
            "kind": self.kind,
            "flowIds": list(self.flow_ids),
            "navigatesTo": list(self.navigates_to),
            "framework": self.framework,
            "sourceHash": self.source_hash,
            "lastAnalyzedCommit": self.last_analyzed_commit,
            "screenshotStatus": self.screenshot_status,
            "screenshotUrl": self.screenshot_url,
            "lastScreenshotCommit": self.last_screenshot_commit,
            "screenshotSourceHash": self.screenshot_source_hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Screen":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            route_path=data["routePath"],
            source_file=data["sourceFile"],
            kind=data.get("kind", "page"),
            flow_ids=list(data.get("flowIds") or []),
            navigates_to=list(data.get("navigatesTo") or []),
            framework=data.get("framework", ""),
            source_hash=data.get("sourceHash"),
            last_analyzed_commit=data.get("lastAnalyzedCommit"),
            screenshot_status=data.get("screenshotStatus", "none"),
            screenshot_url=data.get("screenshotUrl"),
            last_screenshot_commit=data.get("lastScreenshotCommit"),
            screenshot_source_hash=data.get("screenshotSourceHash"),
        )
