"""
Core analysis logic for GitHub Projects Analyzer.

Every operation takes the provider it should talk to. A request fetches one
snapshot, builds the dependency graph once and runs only what was asked for.
Nothing is cached between requests.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from rich.console import Console

from gh_projects_analyzer.analysis import DependencyCriteria, run_dependency_checks
from gh_projects_analyzer.config import AnalyzerSettings, is_verbose_enabled, load_settings
from gh_projects_analyzer.dependency_graph import build_dependency_graph
from gh_projects_analyzer.errors import UpstreamError
from gh_projects_analyzer.metrics import (
    METRIC_NAMES,
    MetricContext,
    MetricValue,
    load_metric_specs,
)
from gh_projects_analyzer.metrics.base import incomplete
from gh_projects_analyzer.models import ProjectSnapshot
from gh_projects_analyzer.priorities import PriorityCriteria, calculate_overall_priority
from gh_projects_analyzer.providers.base import BaseProjectProvider

console = Console(stderr=True)


async def fetch_snapshot(
    provider: BaseProjectProvider, project_id: str
) -> ProjectSnapshot:
    """
    Fetch a project snapshot, converting any failure into UpstreamError.

    Raises:
        UpstreamError: If the fetch fails or returns malformed data
    """
    if is_verbose_enabled():
        console.print(f"[dim]Fetching items for project {project_id}...[/dim]")
    try:
        snapshot = await provider.fetch_item_snapshot(project_id)
    except UpstreamError:
        raise
    except Exception as e:
        if is_verbose_enabled():
            console.print(f"[dim]Fetch failed for project {project_id}: {e!r}[/dim]")
        raise UpstreamError(
            str(e) or "Failed to fetch project items",
            details={"project_id": project_id},
        ) from e

    if not isinstance(snapshot, ProjectSnapshot):
        raise UpstreamError(
            f"Malformed snapshot for project {project_id}",
            details={"project_id": project_id},
        )
    if is_verbose_enabled():
        console.print(f"[dim]Fetched {len(snapshot.items)} item(s)[/dim]")
    return snapshot


def validate_metric_names(
    metric_names: Iterable[str], known: Iterable[str] | None = None
) -> None:
    """
    Reject metric names that are not registered.

    Raises:
        ValueError: Naming every unknown metric and the available ones
    """
    if known is None:
        known = (spec.name for spec in load_metric_specs())
    known = list(known)
    unknown = [name for name in metric_names if name not in known]
    if unknown:
        raise ValueError(
            f"Unknown metric(s): {', '.join(unknown)}. "
            f"Available: {', '.join(known)}"
        )


def compute_metrics(
    snapshot: ProjectSnapshot,
    metric_names: Iterable[str],
    settings: AnalyzerSettings | None = None,
    now: datetime | None = None,
) -> dict[str, MetricValue]:
    """
    Compute the requested metrics from one snapshot.

    A metric that raises gets its error value and a warning; the remaining
    metrics are still computed.

    Raises:
        ValueError: If a requested metric name is not registered
    """
    specs = {spec.name: spec for spec in load_metric_specs()}
    metric_names = list(metric_names)
    validate_metric_names(metric_names, specs)

    context = MetricContext(
        graph=build_dependency_graph(snapshot.items),
        now=now or datetime.now(timezone.utc),
        settings=settings or load_settings(),
    )

    results: dict[str, MetricValue] = {}
    for name in metric_names:
        if name in results:
            continue
        spec = specs[name]
        try:
            results[name] = spec.checker(snapshot, context)
        except Exception as e:
            if spec.error_log:
                console.print(spec.error_log.format(error=e))
            else:
                console.print(f"  [yellow]⚠️  {name} check incomplete: {e}[/yellow]")
            on_error = spec.on_error or incomplete
            results[name] = on_error(e)
    return results


async def analyze_dependencies(
    provider: BaseProjectProvider,
    project_id: str,
    criteria: DependencyCriteria | Mapping[str, Any],
) -> dict[str, dict[str, Any]]:
    """
    Analyze item dependencies of a project.

    Args:
        provider: Fetch capability for the project's platform
        project_id: Project node id
        criteria: Which checks to run (check_cycles, check_missing, check_status)

    Returns:
        Dict with "cycles", "missing" and "status" keys, each present only
        when the matching check was requested.

    Raises:
        UpstreamError: If the project snapshot cannot be fetched
    """
    if not isinstance(criteria, DependencyCriteria):
        criteria = DependencyCriteria.from_mapping(criteria)

    snapshot = await fetch_snapshot(provider, project_id)
    graph = build_dependency_graph(snapshot.items)
    return run_dependency_checks(graph, criteria)


async def generate_project_metrics(
    provider: BaseProjectProvider,
    project_id: str,
    metrics: Iterable[str] | None = None,
    settings: AnalyzerSettings | None = None,
    now: datetime | None = None,
) -> dict[str, MetricValue]:
    """
    Generate metrics for a project.

    Args:
        provider: Fetch capability for the project's platform
        project_id: Project node id
        metrics: Metric names to compute (defaults to all built-in metrics)
        settings: Analysis settings (defaults to the loaded configuration)
        now: Reference time for staleness and trends (defaults to now)

    Returns:
        Mapping of metric name to its value.

    Raises:
        UpstreamError: If the project snapshot cannot be fetched
        ValueError: If an unknown metric name is requested
    """
    metric_names = list(metrics) if metrics is not None else list(METRIC_NAMES)
    validate_metric_names(metric_names)
    snapshot = await fetch_snapshot(provider, project_id)
    return compute_metrics(snapshot, metric_names, settings=settings, now=now)


async def manage_item_dependencies(
    provider: BaseProjectProvider,
    project_id: str,
    item_id: str,
    dependencies: Mapping[str, list[str] | None],
) -> dict[str, bool]:
    """
    Replace an item's blocks / blocked_by / related_to relationships.

    Raises:
        UpstreamError: If the update is rejected
    """
    try:
        await provider.update_item_dependencies(
            project_id,
            item_id,
            blocks=dependencies.get("blocks"),
            blocked_by=dependencies.get("blocked_by"),
            related_to=dependencies.get("related_to"),
        )
    except Exception as e:
        if is_verbose_enabled():
            console.print(f"[dim]Dependency update failed for {item_id}: {e!r}[/dim]")
        raise UpstreamError(
            str(e) or "Failed to update item dependencies",
            details={"project_id": project_id, "item_id": item_id},
        ) from e
    return {"success": True}


async def assess_item_priority(
    provider: BaseProjectProvider,
    project_id: str,
    item_id: str,
    criteria: PriorityCriteria | Mapping[str, str],
) -> dict[str, Any]:
    """
    Score an item's priority and write it to the project's priority field.

    Returns:
        {"success": True, "priority": "high" | "medium" | "low"}

    Raises:
        UpstreamError: If the priority field cannot be updated
    """
    priority = calculate_overall_priority(criteria)
    try:
        await provider.update_item_priority(project_id, item_id, priority)
    except Exception as e:
        if is_verbose_enabled():
            console.print(f"[dim]Priority update failed for {item_id}: {e!r}[/dim]")
        raise UpstreamError(
            str(e) or "Failed to update item priority",
            details={"project_id": project_id, "item_id": item_id},
        ) from e
    return {"success": True, "priority": priority}


async def batch_update_priorities(
    provider: BaseProjectProvider,
    project_id: str,
    items: Iterable[Mapping[str, str]],
) -> list[dict[str, Any]]:
    """
    Set priorities for several items, one update per item.

    Failures are reported per item instead of aborting the batch.
    """
    results: list[dict[str, Any]] = []
    for entry in items:
        item_id = entry["item_id"]
        try:
            await provider.update_item_priority(project_id, item_id, entry["priority"])
            results.append({"item_id": item_id, "success": True})
        except Exception as e:
            console.print(
                f"  [yellow]⚠️  Priority update failed for {item_id}: {e}[/yellow]"
            )
            results.append(
                {"item_id": item_id, "success": False, "error": str(e) or "Unknown error"}
            )
    return results
