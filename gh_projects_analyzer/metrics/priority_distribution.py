"""Priority distribution metric."""

from gh_projects_analyzer.config import AnalyzerSettings
from gh_projects_analyzer.metrics.base import (
    MetricContext,
    MetricSpec,
    MetricValue,
    incomplete,
)
from gh_projects_analyzer.models import Item, ProjectSnapshot, normalize_name
from gh_projects_analyzer.priorities import (
    PRIORITY_LEVELS,
    PRIORITY_SCORES,
    PriorityCriteria,
    calculate_overall_priority,
)


def _criteria_from_fields(item: Item, settings: AnalyzerSettings) -> PriorityCriteria | None:
    values = {}
    for criterion, field_name in settings.criteria_fields.items():
        value = item.field(field_name)
        if not isinstance(value, str):
            return None
        value = normalize_name(value)
        if value not in PRIORITY_SCORES.get(criterion, {}):
            return None
        values[criterion] = value
    try:
        return PriorityCriteria.from_mapping(values)
    except KeyError:
        return None


def priority_bucket(item: Item, settings: AnalyzerSettings) -> str:
    """
    Resolve the priority bucket of one item.

    The priority field wins; otherwise the three rubric fields are scored;
    otherwise the item is "unset".
    """
    value = item.field(settings.priority_field)
    if isinstance(value, str) and value.strip():
        bucket = normalize_name(value)
        return bucket if bucket in PRIORITY_LEVELS else "unset"

    criteria = _criteria_from_fields(item, settings)
    if criteria is not None:
        return calculate_overall_priority(criteria)
    return "unset"


def check_priority_distribution(
    snapshot: ProjectSnapshot, context: MetricContext
) -> MetricValue:
    """Count items per priority bucket; every item lands in exactly one."""
    distribution = {"high": 0, "medium": 0, "low": 0, "unset": 0}
    for item in snapshot.items:
        distribution[priority_bucket(item, context.settings)] += 1
    return distribution


METRIC = MetricSpec(
    name="priority_distribution",
    checker=check_priority_distribution,
    on_error=incomplete,
)
