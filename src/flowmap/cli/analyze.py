"""Analyze a GitHub repository branch."""

from typing import Optional

import typer

from ..sources import GitHubTreeSource
from . import app
from ._common import cli_errors, open_service, print_capture, print_json, print_record, resolve_config


@app.command()
def analyze(
    ctx: typer.Context,
    repo: str = typer.Argument(..., help="Repository as owner/name"),
    branch: str = typer.Option("main", "-b", "--branch", help="Branch to analyze"),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        envvar="GITHUB_TOKEN",
        help="GitHub access token (default: $GITHUB_TOKEN)",
        show_default=False,
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Deployed app URL; refreshes screenshots when given"
    ),
    project_id: Optional[str] = typer.Option(None, "--project-id", help="Screenshot project id"),
    max_files: Optional[int] = typer.Option(
        None, "--max-files", min=1, help="Ceiling on files fetched"
    ),
    store_dir: Optional[str] = typer.Option(None, "--store", help="Record store directory"),
    json_output: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
    flows: bool = typer.Option(False, "--flows", help="List code flows as well"),
):
    """
    Map the screens and code flows of a GitHub repository.

    [bold cyan]Examples:[/bold cyan]

      flowmap analyze acme/shop

      flowmap analyze acme/shop -b develop --json

      flowmap analyze acme/shop --base-url https://shop.example.com
    """
    with cli_errors(ctx):
        config = resolve_config(ctx, max_files=max_files, store_dir=store_dir)
        source = GitHubTreeSource(config.github_api_base_url, timeout=config.request_timeout_seconds)
        with open_service(config, source) as service:
            result = service.analyze(
                repo, branch, access_token=token, base_url=base_url, project_id=project_id
            )

        if json_output:
            print_json(result.to_dict())
            return
        print_record(result.record, cached=result.cached, show_flows=flows)
        if result.screenshots is not None and result.screenshots.total:
            print_capture(result.screenshots)
