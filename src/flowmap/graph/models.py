"""AnalysisRecord: the persisted result of one scan."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..detection.models import FrameworkDetectionResult
from ..flows.models import CodeFlow
from ..screens.models import Screen
from .ids import analysis_id as compute_analysis_id


@dataclass
class ScanDiagnostics:
    """What a scan could not cover, as structured error notes."""

    skipped_files: list[dict[str, Any]] = field(default_factory=list)
    truncations: list[dict[str, Any]] = field(default_factory=list)
    dropped_references: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "skippedFiles": list(self.skipped_files),
            "truncations": list(self.truncations),
            "droppedReferences": list(self.dropped_references),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "ScanDiagnostics":
        data = data or {}
        return cls(
            skipped_files=list(data.get("skippedFiles") or []),
            truncations=list(data.get("truncations") or []),
            dropped_references=list(data.get("droppedReferences") or []),
        )


@dataclass
class AnalysisRecord:
    """One scan of (repo, branch) at ``commit_sha``.

    Superseded, never mutated in the store, by the next scan of the same
    repo and branch.
    """

    repo: str
    branch: str
    commit_sha: str
    timestamp: str
    screens: list[Screen] = field(default_factory=list)
    flows: list[CodeFlow] = field(default_factory=list)
    framework: FrameworkDetectionResult = field(default_factory=FrameworkDetectionResult)
    flows_count: int = 0
    files_analyzed: int = 0
    coverage: float = 0.0
    truncated: bool = False
    diagnostics: ScanDiagnostics = field(default_factory=ScanDiagnostics)

    @property
    def analysis_id(self) -> str:
        return compute_analysis_id(self.repo, self.branch, self.commit_sha)

    def screen(self, screen_id: str) -> Optional[Screen]:
        for s in self.screens:
            if s.id == screen_id:
                return s
        return None

    def flow_index(self) -> dict[str, CodeFlow]:
        return {f.id: f for f in self.flows}

    def to_dict(self) -> dict[str, Any]:
        return {
            "analysisId": self.analysis_id,
            "repo": self.repo,
            "branch": self.branch,
            "commitSha": self.commit_sha,
            "timestamp": self.timestamp,
            "screens": [s.to_dict() for s in self.screens],
            "flows": [f.to_dict() for f in self.flows],
            "framework": self.framework.to_dict(),
            "flowsCount": self.flows_count,
            "filesAnalyzed": self.files_analyzed,
            "coverage": self.coverage,
            "truncated": self.truncated,
            "diagnostics": self.diagnostics.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisRecord":
        return cls(
            repo=data["repo"],
            branch=data["branch"],
            commit_sha=data["commitSha"],
            timestamp=data.get("timestamp", ""),
            screens=[Screen.from_dict(s) for s in data.get("screens") or []],
            flows=[CodeFlow.from_dict(f) for f in data.get("flows") or []],
            framework=FrameworkDetectionResult.from_dict(data.get("framework") or {}),
            flows_count=int(data.get("flowsCount", 0)),
            files_analyzed=int(data.get("filesAnalyzed", 0)),
            coverage=float(data.get("coverage", 0.0)),
            truncated=bool(data.get("truncated", False)),
            diagnostics=ScanDiagnostics.from_dict(data.get("diagnostics")),
        )
