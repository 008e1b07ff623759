"""Backlog health metric."""

from datetime import timedelta

from gh_projects_analyzer.metrics.base import (
    MetricContext,
    MetricSpec,
    MetricValue,
    incomplete,
)
from gh_projects_analyzer.models import ProjectSnapshot, normalize_name


def check_backlog_health(
    snapshot: ProjectSnapshot, context: MetricContext
) -> MetricValue:
    """
    Scores how well groomed the backlog is.

    Considers:
    - Ungroomed items: no Status value at all
    - Items missing any of the configured required fields
    - Stale items: open, status unset or "backlog", created more than
      `stale_days` ago

    Score is the share of items with none of these issues, on a 0-100 scale.
    An empty project scores 100.
    """
    settings = context.settings
    stale_before = context.now - timedelta(days=settings.stale_days)

    ungroomed = 0
    missing_fields = 0
    stale = 0
    flagged = 0

    for item in snapshot.items:
        issues = 0

        status_name = item.status_name
        if status_name is None:
            ungroomed += 1
            issues += 1

        if any(not item.has_field(name) for name in settings.required_fields):
            missing_fields += 1
            issues += 1

        in_backlog = status_name is None or normalize_name(status_name) == "backlog"
        if (
            in_backlog
            and not item.is_closed
            and item.created_at is not None
            and item.created_at < stale_before
        ):
            stale += 1
            issues += 1

        if issues:
            flagged += 1

    total = len(snapshot.items)
    score = 100 if total == 0 else round(100 * (1 - flagged / total))

    return {
        "score": score,
        "issues": {
            "ungroomed": ungroomed,
            "missing_fields": missing_fields,
            "stale": stale,
        },
    }


METRIC = MetricSpec(
    name="backlog_health",
    checker=check_backlog_health,
    on_error=incomplete,
    error_log="  [yellow]⚠️  Backlog health check incomplete: {error}[/yellow]",
)
