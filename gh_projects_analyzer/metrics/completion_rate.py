"""Completion rate metric."""

from gh_projects_analyzer.metrics.base import (
    MetricContext,
    MetricSpec,
    MetricValue,
    incomplete,
)
from gh_projects_analyzer.models import ProjectSnapshot
from gh_projects_analyzer.trend import classify_trend


def check_completion_rate(
    snapshot: ProjectSnapshot, context: MetricContext
) -> MetricValue:
    """
    Share of closed items, plus the direction it is moving in.

    The trend compares two adjacent windows of `trend_window_days` ending
    now; see gh_projects_analyzer.trend.
    """
    total = len(snapshot.items)
    completed = sum(1 for item in snapshot.items if item.is_closed)
    rate = round(completed / total, 4) if total else 0

    trend = classify_trend(
        snapshot.items,
        window_days=context.settings.trend_window_days,
        tolerance=context.settings.trend_tolerance,
        now=context.now,
    )

    return {
        "completed": completed,
        "total": total,
        "rate": rate,
        "trend": trend.value,
    }


METRIC = MetricSpec(
    name="completion_rate",
    checker=check_completion_rate,
    on_error=incomplete,
)
