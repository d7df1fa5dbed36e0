"""Shared CLI helpers."""

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import ScanConfig, load_config
from ..exceptions import FlowmapError
from ..graph import AnalysisRecord
from ..logging_config import get_logger
from ..persistence import AnalysisRepository, DiskStore
from ..screenshots import CaptureResponse, HttpCaptureProvider, ScreenshotOrchestrator
from ..service import AnalysisService
from ..sources import TreeSource

console = Console()
logger = get_logger(__name__)

_STATUS_STYLE = {"ok": "green", "pending": "yellow", "error": "red", "none": "dim"}


def resolve_config(ctx: typer.Context, **overrides: Any) -> ScanConfig:
    """Build config from the global ``--config`` option plus command flags."""
    obj = ctx.obj or {}
    return load_config(config_file=obj.get("config"), **overrides)


def build_orchestrator(config: ScanConfig) -> Optional[ScreenshotOrchestrator]:
    if not config.capture_api_key:
        return None
    return ScreenshotOrchestrator(
        HttpCaptureProvider.from_config(config),
        concurrency=config.capture_concurrency,
        retries=config.capture_retries,
        backoff_seconds=config.capture_backoff_seconds,
    )


@contextmanager
def open_service(config: ScanConfig, source: TreeSource) -> Iterator[AnalysisService]:
    with DiskStore(config.store_dir) as store:
        yield AnalysisService(
            source=source,
            repository=AnalysisRepository(store),
            orchestrator=build_orchestrator(config),
            config=config,
        )


@contextmanager
def cli_errors(ctx: typer.Context) -> Iterator[None]:
    """Map engine errors to a red message and exit code 1."""
    verbose = bool((ctx.obj or {}).get("verbose"))
    try:
        yield
    except typer.Exit:
        raise
    except FlowmapError as e:
        logger.debug(f"{e.__class__.__name__}: {e}", exc_info=verbose)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(130)


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data))


def print_record(record: AnalysisRecord, cached: bool = False, show_flows: bool = False) -> None:
    fw = record.framework
    framework = fw.primary or "unknown"
    console.print(
        f"[bold cyan]{record.repo}[/bold cyan]@{record.branch} "
        f"[dim]{record.commit_sha[:7]}[/dim]"
        + (" [yellow](cached)[/yellow]" if cached else "")
    )
    console.print(f"Analysis: [blue]{record.analysis_id}[/blue]")
    console.print(
        f"Framework: [green]{framework}[/green] (confidence {fw.confidence:.2f})  "
        f"Screens: [yellow]{len(record.screens)}[/yellow]  "
        f"Flows: [yellow]{record.flows_count}[/yellow]  "
        f"Coverage: {record.coverage:.0%}"
    )
    if record.truncated:
        console.print("[yellow]Scan hit a limit; results are partial.[/yellow]")
    if record.diagnostics.skipped_files:
        console.print(f"[dim]{len(record.diagnostics.skipped_files)} files skipped[/dim]")
    console.print()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Route")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Source")
    table.add_column("Flows", justify="right")
    table.add_column("Shot")
    for screen in record.screens:
        style = _STATUS_STYLE.get(screen.screenshot_status, "")
        table.add_row(
            escape(screen.route_path),
            escape(screen.name),
            screen.kind,
            escape(screen.source_file),
            str(len(screen.flow_ids)),
            f"[{style}]{screen.screenshot_status}[/{style}]",
        )
    console.print(table)

    if show_flows and record.flows:
        console.print()
        flows = Table(show_header=True, header_style="bold")
        flows.add_column("Kind")
        flows.add_column("Name")
        flows.add_column("Location")
        flows.add_column("Calls", justify="right")
        for flow in record.flows:
            flows.add_row(
                flow.kind,
                escape(flow.name),
                escape(f"{flow.source_file}:{flow.line}"),
                str(len(flow.calls)),
            )
        console.print(flows)


def print_capture(response: CaptureResponse) -> None:
    console.print(f"Captured [green]{response.captured}[/green]/{response.total} screens")
    for result in response.results:
        if result.status == "ok":
            console.print(f"  [green]ok[/green]    {result.screen_id}  {result.url}")
        else:
            console.print(f"  [red]error[/red] {result.screen_id}  {escape(result.error or '')}")


def default_repo_name(path: Path) -> str:
    return path.resolve().name or "local"
