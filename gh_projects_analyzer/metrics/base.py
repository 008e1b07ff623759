"""
Shared metric types and context helpers.
"""

from datetime import datetime
from typing import Any, Callable, NamedTuple

from gh_projects_analyzer.config import AnalyzerSettings
from gh_projects_analyzer.dependency_graph import DependencyGraph
from gh_projects_analyzer.models import ProjectSnapshot

# Marker for values that cannot be derived from the snapshot
UNAVAILABLE = "unavailable"

MetricValue = dict[str, Any]


class MetricContext(NamedTuple):
    """Context provided to metric checks.

    Built once per request and shared by every metric in it.
    """

    graph: DependencyGraph
    now: datetime
    settings: AnalyzerSettings = AnalyzerSettings()


class MetricSpec(NamedTuple):
    """Specification for a metric check."""

    name: str
    checker: Callable[[ProjectSnapshot, MetricContext], MetricValue]
    on_error: Callable[[Exception], MetricValue] | None = None
    error_log: str | None = None


def incomplete(error: Exception) -> MetricValue:
    """Default value for a metric whose computation failed."""
    return {"error": f"Analysis incomplete - {error}"}
