"""Show a stored analysis."""

from typing import Optional

import typer

from ..graph import find_call_cycles, validate_integrity
from ..persistence import AnalysisRepository, DiskStore
from . import app
from ._common import cli_errors, console, print_json, print_record, resolve_config


@app.command()
def show(
    ctx: typer.Context,
    analysis_id: str = typer.Argument(..., help="Analysis id printed by analyze/scan"),
    store_dir: Optional[str] = typer.Option(None, "--store", help="Record store directory"),
    json_output: bool = typer.Option(False, "--json", help="Output machine-readable JSON"),
    flows: bool = typer.Option(False, "--flows", help="List code flows as well"),
    check: bool = typer.Option(False, "--check", help="Report integrity problems and call cycles"),
):
    """Print the latest stored record for an analysis id."""
    with cli_errors(ctx):
        config = resolve_config(ctx, store_dir=store_dir)
        with DiskStore(config.store_dir) as store:
            record = AnalysisRepository(store).get(analysis_id)

        if json_output:
            print_json(record.to_dict())
        else:
            print_record(record, show_flows=flows)

        if not check:
            return
        problems = validate_integrity(record)
        cycles = find_call_cycles(record.flows)
        if not json_output:
            console.print()
            console.print(f"Integrity problems: [yellow]{len(problems)}[/yellow]")
            for problem in problems:
                console.print(
                    f"  [red]{problem['field']}[/red] {problem['owner']} -> {problem['target']}"
                )
            console.print(f"Call cycles: [yellow]{len(cycles)}[/yellow]")
            for cycle in cycles:
                console.print("  " + " -> ".join(cycle))
        if problems:
            raise typer.Exit(1)
