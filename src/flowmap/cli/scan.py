"""Analyze a local checkout."""

from pathlib import Path
from typing import Optional

import typer

from ..sources import LocalTreeSource
from . import app
from ._common import (
    cli_errors,
    default_repo_name,
    open_service,
    print_json,
    print_record,
    resolve_config,
)


@app.command()
def scan(
    ctx: typer.Context,
    path: Path = typer.Argument(
        Path("."),
        help="Project root (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    name: Optional[str] = typer.Option(None, "--name", help="Repository name to record"),
    branch: str = typer.Option("local", "-b", "--branch", help="Branch label to record"),
    store_dir: Optional[str] = typer.Option(None, "--store", help="Record store directory"),
    json_output: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
    flows: bool = typer.Option(False, "--flows", help="List code flows as well"),
):
    """Map the screens and code flows of a directory on disk."""
    with cli_errors(ctx):
        config = resolve_config(ctx, store_dir=store_dir)
        source = LocalTreeSource(path, allow_hidden=config.allow_hidden_files)
        with open_service(config, source) as service:
            result = service.analyze(name or default_repo_name(path), branch)

        if json_output:
            print_json(result.to_dict())
        else:
            print_record(result.record, cached=result.cached, show_flows=flows)
