"""Capture screenshots for a stored analysis."""

from typing import List, Optional

import typer

from ..sources import MemoryTreeSource
from . import app
from ._common import cli_errors, open_service, print_capture, print_json, resolve_config


@app.command()
def capture(
    ctx: typer.Context,
    analysis_id: str = typer.Argument(..., help="Analysis id printed by analyze/scan"),
    base_url: str = typer.Option(..., "--base-url", help="Deployed app URL to capture"),
    project_id: Optional[str] = typer.Option(None, "--project-id", help="Screenshot project id"),
    only: Optional[List[str]] = typer.Option(
        None, "--only", help="Capture just these screen ids (repeatable)"
    ),
    api_key: Optional[str] = typer.Option(
        None,
        "--api-key",
        envvar="FLOWMAP_CAPTURE_API_KEY",
        help="Screenshot API key",
        show_default=False,
    ),
    store_dir: Optional[str] = typer.Option(None, "--store", help="Record store directory"),
    json_output: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
):
    """
    Capture screens of a stored analysis and record their status.

    Without [bold]--only[/bold], screens that have no successful screenshot
    yet are captured.
    """
    with cli_errors(ctx):
        config = resolve_config(ctx, capture_api_key=api_key, store_dir=store_dir)
        # Capturing reads stored records only; no tree is fetched.
        with open_service(config, MemoryTreeSource()) as service:
            _, response = service.refresh_screenshots(
                analysis_id, base_url, project_id=project_id, only=only or None
            )

        if json_output:
            print_json(response.to_dict())
        else:
            print_capture(response)
