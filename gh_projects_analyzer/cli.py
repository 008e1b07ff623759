"""
Command-line interface for GitHub Projects Analyzer.
"""

import asyncio
import functools
import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from gh_projects_analyzer.config import set_verbose, set_verify_ssl
from gh_projects_analyzer.core import (
    analyze_dependencies,
    assess_item_priority,
    generate_project_metrics,
    manage_item_dependencies,
    validate_metric_names,
)
from gh_projects_analyzer.errors import UpstreamError
from gh_projects_analyzer.http_client import close_async_http_client
from gh_projects_analyzer.metrics import METRIC_NAMES
from gh_projects_analyzer.priorities import (
    PRIORITY_SCORES,
    PriorityCriteria,
    calculate_overall_priority,
    score_priority,
)
from gh_projects_analyzer.providers import get_provider

# --- Typer App ---
app = typer.Typer(help="Analyze dependencies and health metrics of GitHub Projects.")
console = Console()

# --- Helper Functions ---


def syncify(func):
    """Run an async Typer command to completion and close the HTTP client."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        async def runner():
            try:
                return await func(*args, **kwargs)
            finally:
                await close_async_http_client()

        return asyncio.run(runner())

    return wrapper


def _apply_global_options(insecure: bool, verbose: bool | None) -> None:
    if insecure:
        set_verify_ssl(False)
    if verbose is not None:
        set_verbose(verbose)


def _choice(value: str, criterion: str) -> str:
    normalized = value.strip().lower()
    allowed = PRIORITY_SCORES[criterion]
    if normalized not in allowed:
        raise typer.BadParameter(
            f"must be one of: {', '.join(allowed)}", param_hint=f"--{criterion.replace('_', '-')}"
        )
    return normalized


def _print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


def _fail(error: UpstreamError) -> None:
    console.print(f"[bold red]Error:[/bold red] {error.message}")
    raise typer.Exit(code=1)


def _provider():
    try:
        return get_provider("github")
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e


def display_dependency_report(report: dict[str, dict[str, Any]]) -> None:
    """Display the dependency analysis in rich tables."""
    if not report:
        console.print("No checks requested.")
        return

    if "cycles" in report:
        cycles = report["cycles"]
        if "error" in cycles:
            console.print(f"[yellow]Cycle check failed: {cycles['error']}[/yellow]")
        elif not cycles["has_cycles"]:
            console.print("[green]✅ No dependency cycles.[/green]")
        else:
            table = Table(title="Dependency Cycles")
            table.add_column("#", justify="right", style="magenta")
            table.add_column("Cycle", justify="left", style="cyan")
            for index, cycle in enumerate(cycles["cycles"], start=1):
                table.add_row(str(index), " → ".join(cycle + cycle[:1]))
            console.print(table)

    if "missing" in report:
        missing = report["missing"]
        if "error" in missing:
            console.print(f"[yellow]Missing check failed: {missing['error']}[/yellow]")
        elif not missing["has_missing"]:
            console.print("[green]✅ No references to missing items.[/green]")
        else:
            table = Table(title="Missing Dependencies")
            table.add_column("Item", style="cyan", no_wrap=True)
            table.add_column("Relationship", style="magenta")
            table.add_column("Missing Target", style="red")
            for entry in missing["missing"]:
                table.add_row(entry["item_id"], entry["kind"], entry["target_id"])
            console.print(table)

    if "status" in report:
        status = report["status"]
        if "error" in status:
            console.print(f"[yellow]Status check failed: {status['error']}[/yellow]")
        elif not status["has_inconsistencies"]:
            console.print("[green]✅ Dependency statuses are consistent.[/green]")
        else:
            table = Table(title="Status Inconsistencies")
            table.add_column("Blocker", style="cyan", no_wrap=True)
            table.add_column("Blocker Status")
            table.add_column("Blocked", style="cyan", no_wrap=True)
            table.add_column("Blocked Status")
            for entry in status["inconsistencies"]:
                table.add_row(
                    entry["blocker_id"],
                    entry["blocker_status"],
                    entry["blocked_id"],
                    f"[yellow]{entry['blocked_status']}[/yellow]",
                )
            console.print(table)


def _format_value(value: Any) -> str:
    if value is None:
        return "[dim]n/a[/dim]"
    if isinstance(value, dict):
        return ", ".join(f"{key}: {_format_value(inner)}" for key, inner in value.items())
    return str(value)


def display_metrics(results: dict[str, dict[str, Any]]) -> None:
    """Display the metric report in a rich table."""
    table = Table(title="Project Metrics")
    table.add_column("Metric", justify="left", style="cyan", no_wrap=True)
    table.add_column("Value", justify="left")
    for name, value in results.items():
        if "error" in value:
            table.add_row(name, f"[yellow]{value['error']}[/yellow]")
        else:
            table.add_row(name, _format_value(value))
    console.print(table)


# --- Commands ---


@app.command()
@syncify
async def analyze(
    project_id: str = typer.Argument(..., help="Project node id (PVT_...)."),
    cycles: bool = typer.Option(False, "--cycles", help="Detect dependency cycles."),
    missing: bool = typer.Option(
        False, "--missing", help="Report references to items not in the project."
    ),
    status: bool = typer.Option(
        False, "--status", help="Check blocker/blocked status consistency."
    ),
    output_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
    insecure: bool = typer.Option(
        False, "--insecure", help="Disable SSL certificate verification."
    ),
    verbose: bool | None = typer.Option(
        None, "--verbose", "-v", help="Print fetch details."
    ),
):
    """Analyze item dependencies. Runs every check when none is selected."""
    _apply_global_options(insecure, verbose)
    if not (cycles or missing or status):
        cycles = missing = status = True
    criteria = {"check_cycles": cycles, "check_missing": missing, "check_status": status}

    try:
        report = await analyze_dependencies(_provider(), project_id, criteria)
    except UpstreamError as e:
        _fail(e)
        return

    if output_json:
        _print_json(report)
    else:
        display_dependency_report(report)


@app.command()
@syncify
async def metrics(
    project_id: str = typer.Argument(..., help="Project node id (PVT_...)."),
    metric: list[str] | None = typer.Option(
        None,
        "--metric",
        "-m",
        help=f"Metric to compute (repeatable): {', '.join(METRIC_NAMES)}.",
    ),
    output_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
    insecure: bool = typer.Option(
        False, "--insecure", help="Disable SSL certificate verification."
    ),
    verbose: bool | None = typer.Option(
        None, "--verbose", "-v", help="Print fetch details."
    ),
):
    """Generate project metrics. Computes all of them when none is selected."""
    _apply_global_options(insecure, verbose)
    names = list(metric) if metric else list(METRIC_NAMES)
    try:
        validate_metric_names(names)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--metric") from e

    try:
        results = await generate_project_metrics(_provider(), project_id, names)
    except UpstreamError as e:
        _fail(e)
        return

    if output_json:
        _print_json(results)
    else:
        display_metrics(results)


@app.command()
@syncify
async def priority(
    business_value: str = typer.Option(..., help="high | medium | low"),
    technical_complexity: str = typer.Option(..., help="high | medium | low"),
    client_priority: str = typer.Option(..., help="urgent | high | normal | low"),
    project_id: str | None = typer.Option(
        None, "--project", help="Project to write the priority to."
    ),
    item_id: str | None = typer.Option(None, "--item", help="Item to update."),
    output_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
    insecure: bool = typer.Option(
        False, "--insecure", help="Disable SSL certificate verification."
    ),
):
    """Score an item's priority, and store it when --project and --item are given."""
    _apply_global_options(insecure, None)
    criteria = PriorityCriteria(
        business_value=_choice(business_value, "business_value"),
        technical_complexity=_choice(technical_complexity, "technical_complexity"),
        client_priority=_choice(client_priority, "client_priority"),
    )

    if project_id and item_id:
        try:
            result = await assess_item_priority(
                _provider(), project_id, item_id, criteria
            )
        except UpstreamError as e:
            _fail(e)
            return
    else:
        result = {"success": True, "priority": calculate_overall_priority(criteria)}

    if output_json:
        _print_json(result)
    else:
        console.print(
            f"Priority: [bold]{result['priority']}[/bold] "
            f"[dim](score {score_priority(criteria)})[/dim]"
        )


@app.command()
@syncify
async def link(
    project_id: str = typer.Argument(..., help="Project node id (PVT_...)."),
    item_id: str = typer.Argument(..., help="Item whose relationships to set."),
    blocks: list[str] | None = typer.Option(None, "--blocks", help="Item ids this item blocks."),
    blocked_by: list[str] | None = typer.Option(
        None, "--blocked-by", help="Item ids blocking this item."
    ),
    related_to: list[str] | None = typer.Option(
        None, "--related-to", help="Related item ids."
    ),
    insecure: bool = typer.Option(
        False, "--insecure", help="Disable SSL certificate verification."
    ),
):
    """Set blocks / blocked-by / related-to relationships of an item."""
    _apply_global_options(insecure, None)
    dependencies = {
        "blocks": list(blocks) if blocks else None,
        "blocked_by": list(blocked_by) if blocked_by else None,
        "related_to": list(related_to) if related_to else None,
    }
    try:
        await manage_item_dependencies(
            _provider(), project_id, item_id, dependencies
        )
    except UpstreamError as e:
        _fail(e)
        return
    console.print(f"[green]✨ Updated relationships of {item_id}.[/green]")


if __name__ == "__main__":
    app()
