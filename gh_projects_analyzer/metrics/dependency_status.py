"""Dependency status metric."""

from gh_projects_analyzer.metrics.base import (
    MetricContext,
    MetricSpec,
    MetricValue,
    incomplete,
)
from gh_projects_analyzer.models import ProjectSnapshot


def check_dependency_status(
    _snapshot: ProjectSnapshot, context: MetricContext
) -> MetricValue:
    """
    Summarizes the blocking structure of the project.

    - blocked_items: items with at least one unfinished blocker
    - max_chain_length: edges on the longest blocking chain, with each
      cycle collapsed to a single step
    - circular_dependencies: items that sit on any cycle
    """
    graph = context.graph

    blocked_items = 0
    for item_id in graph.nodes:
        if any(
            not graph.items_by_id[blocker].is_done
            for blocker in graph.predecessors(item_id)
        ):
            blocked_items += 1

    return {
        "blocked_items": blocked_items,
        "max_chain_length": graph.longest_chain_length(),
        "circular_dependencies": len(graph.cyclic_nodes()),
    }


METRIC = MetricSpec(
    name="dependency_status",
    checker=check_dependency_status,
    on_error=incomplete,
    error_log="  [yellow]⚠️  Dependency status check incomplete: {error}[/yellow]",
)
