"""
Metric registry for GitHub Projects Analyzer.

Built-in metrics live in this package, one module per metric, each exporting
a module-level METRIC. Third-party packages can add metrics through the
"gh_projects_analyzer.metrics" entry-point group; built-in names always win.
"""

from importlib import import_module
from importlib.metadata import entry_points

from gh_projects_analyzer.metrics.base import (
    UNAVAILABLE,
    MetricContext,
    MetricSpec,
    MetricValue,
)

__all__ = [
    "UNAVAILABLE",
    "MetricContext",
    "MetricSpec",
    "MetricValue",
    "METRIC_NAMES",
    "load_metric_specs",
    "get_metric_spec",
]

ENTRY_POINT_GROUP = "gh_projects_analyzer.metrics"

_BUILTIN_MODULES = [
    "gh_projects_analyzer.metrics.backlog_health",
    "gh_projects_analyzer.metrics.dependency_status",
    "gh_projects_analyzer.metrics.priority_distribution",
    "gh_projects_analyzer.metrics.completion_rate",
    "gh_projects_analyzer.metrics.cycle_time",
]

METRIC_NAMES = [
    "backlog_health",
    "dependency_status",
    "priority_distribution",
    "completion_rate",
    "cycle_time",
]


def _load_builtin_metric_specs() -> list[MetricSpec]:
    specs: list[MetricSpec] = []
    for module_path in _BUILTIN_MODULES:
        module = import_module(module_path)
        spec = getattr(module, "METRIC", None)
        if isinstance(spec, MetricSpec):
            specs.append(spec)
    return specs


def _load_entrypoint_metric_specs() -> list[MetricSpec]:
    specs: list[MetricSpec] = []
    for entry_point in entry_points(group=ENTRY_POINT_GROUP):
        loaded = entry_point.load()
        if isinstance(loaded, MetricSpec):
            specs.append(loaded)
        elif callable(loaded):
            produced = loaded()
            if isinstance(produced, MetricSpec):
                specs.append(produced)
    return specs


def load_metric_specs() -> list[MetricSpec]:
    """Return built-in specs followed by plugin specs with new names."""
    specs = list(_load_builtin_metric_specs())
    seen = {spec.name for spec in specs}
    for spec in _load_entrypoint_metric_specs():
        if spec.name not in seen:
            specs.append(spec)
            seen.add(spec.name)
    return specs


def get_metric_spec(name: str) -> MetricSpec | None:
    """Look up a metric spec by name."""
    for spec in load_metric_specs():
        if spec.name == name:
            return spec
    return None
