"""Cycle time metric."""

from datetime import datetime

from gh_projects_analyzer.config import AnalyzerSettings
from gh_projects_analyzer.metrics.base import (
    UNAVAILABLE,
    MetricContext,
    MetricSpec,
    MetricValue,
    incomplete,
)
from gh_projects_analyzer.models import Item, ItemStatus, ProjectSnapshot, as_datetime

SECONDS_PER_DAY = 86400

_BUCKETS = [
    ItemStatus.TODO,
    ItemStatus.IN_PROGRESS,
    ItemStatus.REVIEW,
    ItemStatus.DONE,
]


def _days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_DAY


def _status_entries(item: Item, settings: AnalyzerSettings) -> dict[ItemStatus, datetime]:
    """Entry time per status bucket, from the configured date fields."""
    entries: dict[ItemStatus, datetime] = {}
    for bucket in _BUCKETS:
        field_name = settings.status_date_fields.get(bucket.value)
        entered = as_datetime(item.field(field_name)) if field_name else None
        if entered is None and bucket == ItemStatus.TODO:
            entered = item.created_at
        if entered is not None:
            entries[bucket] = entered
    return entries


def status_durations(item: Item, settings: AnalyzerSettings) -> dict[ItemStatus, float]:
    """
    Days spent in each status bucket for one item.

    A bucket lasts from its entry date to the entry date of the next bucket
    reached; "done" lasts until the item was closed. Buckets without both
    ends are omitted.
    """
    entries = _status_entries(item, settings)
    durations: dict[ItemStatus, float] = {}
    for position, bucket in enumerate(_BUCKETS):
        start = entries.get(bucket)
        if start is None:
            continue
        end = None
        if bucket == ItemStatus.DONE:
            end = item.closed_at
        else:
            for later in _BUCKETS[position + 1 :]:
                if later in entries:
                    end = entries[later]
                    break
        if end is not None and end >= start:
            durations[bucket] = _days_between(start, end)
    return durations


def check_cycle_time(snapshot: ProjectSnapshot, context: MetricContext) -> MetricValue:
    """
    Average days from creation to closing over closed items.

    `by_status` averages the time spent in each workflow bucket when status
    entry dates exist as project date fields; without any it is reported as
    "unavailable" rather than zero.
    """
    cycle_days = []
    for item in snapshot.items:
        if not item.is_closed or item.created_at is None or item.closed_at is None:
            continue
        if item.closed_at < item.created_at:
            continue
        cycle_days.append(_days_between(item.created_at, item.closed_at))

    samples: dict[ItemStatus, list[float]] = {bucket: [] for bucket in _BUCKETS}
    for item in snapshot.items:
        for bucket, days in status_durations(item, context.settings).items():
            samples[bucket].append(days)

    if any(samples.values()):
        by_status: dict[str, float | None] | str = {
            bucket.value: (
                round(sum(values) / len(values), 2) if values else None
            )
            for bucket, values in samples.items()
        }
    else:
        by_status = UNAVAILABLE

    return {
        "available": bool(cycle_days),
        "average_days": (
            round(sum(cycle_days) / len(cycle_days), 2) if cycle_days else None
        ),
        "completed_items": len(cycle_days),
        "by_status": by_status,
    }


METRIC = MetricSpec(
    name="cycle_time",
    checker=check_cycle_time,
    on_error=incomplete,
    error_log="  [yellow]⚠️  Cycle time check incomplete: {error}[/yellow]",
)
