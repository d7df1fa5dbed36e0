"""Merge screens and flows into one consistent AnalysisRecord.

The assembler is a pure function of its inputs: ids are re-derived from
normalized paths and discriminators, ordering is fixed, and dangling
references are dropped and reported instead of failing the scan.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..detection.models import FrameworkDetectionResult
from ..exceptions import GraphIntegrityError
from ..flows.models import CodeFlow, FlowExtraction
from ..logging_config import get_logger, log_coded_error
from ..screens.models import Screen
from .ids import flow_discriminator, flow_id, normalize_path, normalize_route, screen_id
from .models import AnalysisRecord, ScanDiagnostics

logger = get_logger(__name__)


def assemble_record(
    repo: str,
    branch: str,
    commit_sha: str,
    screens: Iterable[Screen],
    extraction: FlowExtraction,
    framework: FrameworkDetectionResult,
    timestamp: Optional[str] = None,
    code_files_total: Optional[int] = None,
    skipped_files: Iterable[dict[str, Any]] = (),
    truncations: Iterable[dict[str, Any]] = (),
) -> AnalysisRecord:
    """Build the record for one scan.

    Args:
        repo, branch, commit_sha: Identity of the scanned snapshot
        screens: Extracted screens; not mutated
        extraction: Flow extractor output keyed by the screens' ids
        framework: Detection result for the same tree
        timestamp: ISO-8601 scan time; defaults to now (UTC)
        code_files_total: Code files in the tree, the coverage denominator
        skipped_files: Fetch-stage skips to report next to extraction skips
        truncations: Fetch-stage truncation notes

    Returns:
        AnalysisRecord with stable ids and ordering
    """
    dropped: list[GraphIntegrityError] = []

    # Re-key flows; the lowest-sorting copy of a duplicate wins.
    rekey: dict[str, str] = {}
    flows_by_id: dict[str, CodeFlow] = {}
    for flow in sorted(extraction.flows, key=CodeFlow.sort_key):
        path = normalize_path(flow.source_file)
        final = flow_id(path, flow_discriminator(flow.line, flow.kind, flow.name))
        rekey[flow.id] = final
        if final in flows_by_id:
            flows_by_id[final].calls.extend(flow.calls)
            continue
        flows_by_id[final] = dataclasses.replace(
            flow, id=final, source_file=path, calls=list(flow.calls)
        )

    for flow in flows_by_id.values():
        calls: set[str] = set()
        for target in flow.calls:
            final = rekey.get(target, target)
            if final in flows_by_id:
                calls.add(final)
            else:
                message = f"Flow {flow.id} calls unknown flow {target}"
                dropped.append(_dangling(message, flow.id, target))
        flow.calls = sorted(calls)

    assembled: dict[str, Screen] = {}
    for screen in screens:
        source = normalize_path(screen.source_file)
        route = normalize_route(screen.route_path)
        final_id = screen_id(source, route)
        if final_id in assembled:
            continue

        flow_ids: list[str] = []
        seen: set[str] = set()
        for fid in extraction.flows_by_screen.get(screen.id, screen.flow_ids):
            final = rekey.get(fid, fid)
            if final not in flows_by_id:
                message = f"Screen {final_id} owns unknown flow {fid}"
                dropped.append(_dangling(message, final_id, fid))
                continue
            if final not in seen:
                seen.add(final)
                flow_ids.append(final)

        status = screen.screenshot_status
        assembled[final_id] = dataclasses.replace(
            screen,
            id=final_id,
            source_file=source,
            route_path=route,
            flow_ids=flow_ids,
            navigates_to=sorted(set(screen.navigates_to)),
            last_analyzed_commit=commit_sha,
            screenshot_url=screen.screenshot_url if status == "ok" else None,
        )

    for error in dropped:
        log_coded_error(logger, error)

    files_analyzed = extraction.files_analyzed
    if code_files_total:
        coverage = round(min(1.0, files_analyzed / code_files_total), 4)
    else:
        coverage = 1.0 if files_analyzed else 0.0

    all_truncations = list(truncations) + list(extraction.truncations)
    flows = sorted(flows_by_id.values(), key=CodeFlow.sort_key)
    return AnalysisRecord(
        repo=repo,
        branch=branch,
        commit_sha=commit_sha,
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(timespec="seconds"),
        screens=sorted(assembled.values(), key=Screen.sort_key),
        flows=flows,
        framework=framework,
        flows_count=len(flows),
        files_analyzed=files_analyzed,
        coverage=coverage,
        truncated=bool(all_truncations),
        diagnostics=ScanDiagnostics(
            skipped_files=sorted(
                list(skipped_files) + list(extraction.skipped_files), key=lambda s: s["path"]
            ),
            truncations=all_truncations,
            dropped_references=[e.to_json() for e in dropped],
        ),
    )


def _dangling(message: str, owner: str, target: str) -> GraphIntegrityError:
    return GraphIntegrityError(message, context={"owner": owner, "target": target})
