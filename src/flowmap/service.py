"""Engine facade: fetch, detect, extract, assemble, persist, capture.

Every collaborator is passed in; nothing is resolved from module state.

Usage:
    service = AnalysisService(
        source=GitHubTreeSource(),
        repository=AnalysisRepository(DiskStore(".flowmap-store")),
    )
    result = service.analyze("acme/shop", "main")
"""

from __future__ import annotations

import re
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from .concurrency import SingleFlight
from .config import DEFAULT_CONFIG, ScanConfig
from .detection import FrameworkDetectionResult, FrameworkDetector
from .exceptions import (
    AuthorizationError,
    ConfigurationError,
    ErrorCode,
    ExternalDependencyError,
    ExtractionLimitExceeded,
    ValidationError,
)
from .flows import CodeFlow, FlowExtractor
from .graph import AnalysisRecord, assemble_record, normalize_path
from .imports import is_code_file
from .logging_config import get_logger
from .persistence import AnalysisRepository
from .screens import Screen, ScreenExtractor
from .screenshots import (
    CaptureResponse,
    ScreenshotOrchestrator,
    ScreenshotTarget,
    apply_results,
    is_capturable,
    mark_pending,
    targets_for,
)
from .sources import FileEntry, TreeSource, call_with_retry
from .sources.local import SKIP_DIRS

logger = get_logger(__name__)

_MANIFEST = re.compile(r"(?:^|/)(?:package\.json|(?:next|nuxt)\.config\.(?:js|mjs|cjs|ts))$")
_ROUTE_FILE = re.compile(
    r"(?:^|/)(?:app|pages|screens?|views?|routes?|router)/|(?:^|/)(?:App|main|index|routes?|router)"
    r"\.(?:tsx|ts|jsx|js)$|(?:^|/)(?:bin|cli)/",
    re.IGNORECASE,
)


@dataclass
class AnalysisResult:
    analysis_id: str
    commit_sha: str
    screens: list[Screen]
    flows: list[CodeFlow]
    framework: FrameworkDetectionResult
    cached: bool = False
    screenshots: Optional[CaptureResponse] = None
    record: Optional[AnalysisRecord] = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "analysisId": self.analysis_id,
            "commitSha": self.commit_sha,
            "screens": [s.to_dict() for s in self.screens],
            "flows": [f.to_dict() for f in self.flows],
            "framework": self.framework.to_dict(),
            "cached": self.cached,
        }
        if self.screenshots is not None:
            data["screenshots"] = self.screenshots.to_dict()
        if self.record is not None:
            data["coverage"] = self.record.coverage
            data["truncated"] = self.record.truncated
            data["diagnostics"] = self.record.diagnostics.to_dict()
        return data


@dataclass
class FetchedTree:
    """Blob listing plus the decoded contents that were fetched."""

    entries: list[FileEntry]
    contents: dict[str, str]
    code_files_total: int
    skipped: list[dict[str, Any]] = field(default_factory=list)
    truncations: list[dict[str, Any]] = field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        return [e.path for e in self.entries]

    @property
    def hashes(self) -> dict[str, str]:
        return {e.path: e.sha for e in self.entries}


class AnalysisService:
    def __init__(
        self,
        source: TreeSource,
        repository: AnalysisRepository,
        detector: Optional[FrameworkDetector] = None,
        screen_extractor: Optional[ScreenExtractor] = None,
        flow_extractor: Optional[FlowExtractor] = None,
        orchestrator: Optional[ScreenshotOrchestrator] = None,
        config: Optional[ScanConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.source = source
        self.repository = repository
        self.detector = detector or FrameworkDetector(
            threshold=self.config.detection_threshold,
            saturation=self.config.detection_saturation,
        )
        self.screen_extractor = screen_extractor or ScreenExtractor()
        self.flow_extractor = flow_extractor or FlowExtractor(
            import_depth=self.config.import_depth,
            max_closure_files=self.config.max_closure_files,
            max_flows_per_file=self.config.max_flows_per_file,
            max_body_lines=self.config.max_body_lines,
            max_workers=self.config.fetch_workers,
        )
        self.orchestrator = orchestrator
        self._sleep = sleep
        self._flights = SingleFlight()

    # -- public operations --------------------------------------------------

    def analyze(
        self,
        repo: str,
        branch: str,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> AnalysisResult:
        """Analyze ``repo`` at the head of ``branch``.

        Concurrent calls for the same (repo, branch, commit) share one scan.
        A stored record for the same commit is returned without touching the
        tree source beyond resolving the commit.

        Raises:
            ValidationError: Empty repo or branch
            AuthorizationError: Missing or rejected credential
            ExternalDependencyError: Commit or tree lookup failed after retries
        """
        if not repo or not repo.strip() or not branch or not branch.strip():
            raise ValidationError(
                "repo and branch must be non-empty", context={"repo": repo, "branch": branch}
            )

        commit_sha = self._retry(
            lambda: self.source.resolve_commit(repo, branch, access_token),
            f"resolve {repo}@{branch}",
        )
        key = (repo, branch, commit_sha)
        (record, cached, screenshots), shared = self._flights.do(
            key,
            lambda: self._analyze_commit(
                repo, branch, commit_sha, access_token, base_url, project_id or repo
            ),
        )
        if shared:
            logger.debug(f"Joined in-flight scan of {repo}@{commit_sha[:7]}")

        return AnalysisResult(
            analysis_id=record.analysis_id,
            commit_sha=record.commit_sha,
            screens=record.screens,
            flows=record.flows,
            framework=record.framework,
            cached=cached,
            screenshots=screenshots,
            record=record,
        )

    def capture_screenshots(
        self,
        project_id: str,
        base_url: str,
        screens: Sequence[Union[ScreenshotTarget, Mapping[str, str]]],
    ) -> CaptureResponse:
        """Capture the given screens now, without touching stored records."""
        orchestrator = self._require_orchestrator()
        if not base_url or not base_url.strip():
            raise ValidationError("base_url must be non-empty")
        if not screens:
            raise ValidationError("at least one screen is required")
        targets = [
            s if isinstance(s, ScreenshotTarget)
            else ScreenshotTarget(id=s["id"], name=s.get("name", s["id"]), path=s["path"])
            for s in screens
        ]
        return orchestrator.capture(project_id, base_url, targets)

    def get_analysis(self, analysis_id: str) -> AnalysisRecord:
        return self.repository.get(analysis_id)

    def refresh_screenshots(
        self,
        analysis_id: str,
        base_url: str,
        project_id: Optional[str] = None,
        only: Optional[Iterable[str]] = None,
    ) -> tuple[AnalysisRecord, CaptureResponse]:
        """Capture screens of a stored analysis and persist the folded statuses.

        Without ``only``, screens that never captured successfully are
        selected; with ``only``, exactly those (capturable) screens are.
        """
        orchestrator = self._require_orchestrator()
        if not base_url or not base_url.strip():
            raise ValidationError("base_url must be non-empty")
        record = self.repository.get(analysis_id)
        project = project_id or record.repo

        if only is None:
            updated, response = orchestrator.refresh(
                record, record, base_url, project, on_pending=self.repository.save
            )
        else:
            wanted = set(only)
            unknown = sorted(wanted - {s.id for s in record.screens})
            if unknown:
                raise ValidationError(
                    f"Unknown screen ids: {', '.join(unknown)}", context={"analysis_id": analysis_id}
                )
            selected = [s for s in record.screens if s.id in wanted and is_capturable(s)]
            pending = mark_pending(record, [s.id for s in selected])
            self.repository.save(pending)
            response = orchestrator.capture(project, base_url, targets_for(selected))
            updated = apply_results(pending, response.results)

        self.repository.save(updated)
        return updated, response

    # -- pipeline -----------------------------------------------------------

    def _analyze_commit(
        self,
        repo: str,
        branch: str,
        commit_sha: str,
        access_token: Optional[str],
        base_url: Optional[str],
        project_id: str,
    ) -> tuple[AnalysisRecord, bool, Optional[CaptureResponse]]:
        previous = self.repository.load_latest(repo, branch)
        if previous is not None and previous.commit_sha == commit_sha:
            logger.info(f"{repo}@{branch} already analyzed at {commit_sha[:7]}")
            record, screenshots = self._maybe_capture(previous, previous, base_url, project_id)
            return record, True, screenshots

        tree = self._fetch_tree(repo, commit_sha, access_token)
        record = self.scan_tree(repo, branch, commit_sha, tree)
        record = ScreenshotOrchestrator.carry_forward(record, previous)
        self.repository.save(record)
        logger.info(
            f"Analyzed {repo}@{branch} ({commit_sha[:7]}): {len(record.screens)} screens, "
            f"{record.flows_count} flows, coverage {record.coverage:.0%}"
        )

        record, screenshots = self._maybe_capture(record, previous, base_url, project_id)
        return record, False, screenshots

    def scan_tree(
        self, repo: str, branch: str, commit_sha: str, tree: FetchedTree
    ) -> AnalysisRecord:
        """Detect, extract and assemble a record from an already fetched tree."""
        framework = self.detector.detect(tree.paths, tree.contents)
        screens = self.screen_extractor.extract(
            tree.paths, tree.contents, framework, hashes=tree.hashes
        )
        extraction = self.flow_extractor.extract(screens, tree.contents)
        return assemble_record(
            repo,
            branch,
            commit_sha,
            screens,
            extraction,
            framework,
            timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
            code_files_total=tree.code_files_total,
            skipped_files=tree.skipped,
            truncations=tree.truncations,
        )

    def _maybe_capture(
        self,
        record: AnalysisRecord,
        previous: Optional[AnalysisRecord],
        base_url: Optional[str],
        project_id: str,
    ) -> tuple[AnalysisRecord, Optional[CaptureResponse]]:
        if not base_url or self.orchestrator is None:
            return record, None
        updated, response = self.orchestrator.refresh(
            record, previous, base_url, project_id, on_pending=self.repository.save
        )
        if response.total:
            self.repository.save(updated)
        return updated, response

    def _fetch_tree(self, repo: str, commit_sha: str, access_token: Optional[str]) -> FetchedTree:
        entries = self._retry(
            lambda: self.source.list_tree(repo, commit_sha, access_token),
            f"list tree {repo}@{commit_sha[:7]}",
        )
        blobs = sorted(
            (
                FileEntry(normalize_path(e.path), e.sha, e.size, e.type)
                for e in entries
                if e.is_blob and not _in_skipped_dir(e.path)
            ),
            key=lambda e: e.path,
        )

        candidates = [e for e in blobs if _is_candidate(e.path)]
        code_files_total = sum(1 for e in candidates if is_code_file(e.path))
        skipped: list[dict[str, Any]] = []
        truncations: list[dict[str, Any]] = []

        fetchable = []
        for entry in candidates:
            if entry.size > self.config.max_file_size_bytes:
                skipped.append(
                    {
                        "path": entry.path,
                        "code": ErrorCode.FM401.value,
                        "reason": f"exceeds {self.config.max_file_size_bytes} bytes",
                    }
                )
            else:
                fetchable.append(entry)

        fetchable.sort(key=lambda e: (_priority(e.path), e.path))
        if len(fetchable) > self.config.max_files:
            dropped = len(fetchable) - self.config.max_files
            fetchable = fetchable[: self.config.max_files]
            truncations.append(
                ExtractionLimitExceeded(
                    f"File limit {self.config.max_files} reached; {dropped} files not fetched",
                    context={"limit": self.config.max_files, "not_fetched": dropped},
                ).to_json()
            )

        contents = self._fetch_contents(repo, commit_sha, access_token, fetchable, skipped)
        return FetchedTree(
            entries=blobs,
            contents=contents,
            code_files_total=code_files_total,
            skipped=skipped,
            truncations=truncations,
        )

    def _fetch_contents(
        self,
        repo: str,
        commit_sha: str,
        access_token: Optional[str],
        entries: list[FileEntry],
        skipped: list[dict[str, Any]],
    ) -> dict[str, str]:
        contents: dict[str, str] = {}

        def _fetch(entry: FileEntry) -> str:
            raw = self._retry(
                lambda: self.source.get_content(repo, commit_sha, entry.path, access_token),
                f"fetch {entry.path}",
            )
            return raw.decode("utf-8", errors="replace")

        with ThreadPoolExecutor(max_workers=self.config.fetch_workers) as executor:
            futures = {executor.submit(_fetch, entry): entry for entry in entries}
            for future in as_completed(futures):
                entry = futures[future]
                try:
                    contents[entry.path] = future.result()
                except AuthorizationError:
                    raise
                except ExternalDependencyError as e:
                    logger.warning(f"Skipping {entry.path}: {e}")
                    skipped.append(
                        {"path": entry.path, "code": e.code.value, "reason": e.message}
                    )

        skipped.sort(key=lambda s: s["path"])
        return contents

    def _retry(self, fn: Callable[[], Any], label: str) -> Any:
        return call_with_retry(
            fn,
            retries=self.config.fetch_retries,
            backoff_seconds=self.config.fetch_backoff_seconds,
            sleep=self._sleep,
            label=label,
        )

    def _require_orchestrator(self) -> ScreenshotOrchestrator:
        if self.orchestrator is None:
            raise ConfigurationError(
                "Screenshot capture is not configured", config_key="capture_api_key"
            )
        return self.orchestrator


def _in_skipped_dir(path: str) -> bool:
    return any(part in SKIP_DIRS for part in normalize_path(path).split("/")[:-1])


def _is_candidate(path: str) -> bool:
    return bool(_MANIFEST.search(path)) or is_code_file(path)


def _priority(path: str) -> int:
    if _MANIFEST.search(path):
        return 0
    if _ROUTE_FILE.search(path):
        return 1
    return 2
