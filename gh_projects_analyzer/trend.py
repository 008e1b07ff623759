"""
Completion trend analysis for GitHub Projects Analyzer.

Compares how quickly work gets closed across adjacent time windows that end
at the analysis time.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, NamedTuple

from gh_projects_analyzer.models import Item


class Trend(str, Enum):
    """Direction of the completion rate between two windows."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class TimeWindow(NamedTuple):
    """Represents a time window for data collection."""

    start: datetime
    end: datetime
    label: str  # Display label (e.g., "2024-01-01..2024-01-15")


class WindowCompletion(NamedTuple):
    """Completion counts observed inside one window."""

    window: TimeWindow
    closed: int
    active: int

    @property
    def rate(self) -> float | None:
        if self.active == 0:
            return None
        return self.closed / self.active


def generate_time_windows(
    periods: int,
    window_days: int,
    end_date: datetime | None = None,
) -> list[TimeWindow]:
    """
    Generate adjacent time windows for trend analysis.

    Args:
        periods: Number of time windows to generate
        window_days: Size of each window in days
        end_date: End date for analysis (defaults to now)

    Returns:
        List of TimeWindow objects, ordered from oldest to newest
    """
    if end_date is None:
        end_date = datetime.now(timezone.utc)

    windows: list[TimeWindow] = []
    delta = timedelta(days=window_days)

    # i=0 is the most recent window, ending at end_date
    for i in range(periods):
        window_end = end_date - (delta * i)
        window_start = window_end - delta
        label = f"{window_start:%Y-%m-%d}..{window_end:%Y-%m-%d}"
        windows.append(TimeWindow(start=window_start, end=window_end, label=label))

    return list(reversed(windows))


def count_window_completion(items: Iterable[Item], window: TimeWindow) -> WindowCompletion:
    """
    Count items closed in the window against items open at some point in it.

    Items lacking a creation time, or closed items lacking a closing time,
    cannot be placed on the timeline and are left out.
    """
    closed = 0
    active = 0
    for item in items:
        if item.created_at is None or item.created_at >= window.end:
            continue
        if item.is_closed:
            if item.closed_at is None:
                continue
            if item.closed_at < window.start:
                continue
            active += 1
            if item.closed_at < window.end:
                closed += 1
        else:
            active += 1
    return WindowCompletion(window=window, closed=closed, active=active)


def classify_trend(
    items: Iterable[Item],
    window_days: int,
    tolerance: float,
    now: datetime | None = None,
) -> Trend:
    """
    Compare completion rate in the latest window with the one before it.

    Returns STABLE when either window has nothing to measure.
    """
    items = list(items)
    previous_window, current_window = generate_time_windows(2, window_days, now)
    previous = count_window_completion(items, previous_window)
    current = count_window_completion(items, current_window)
    if previous.rate is None or current.rate is None:
        return Trend.STABLE

    difference = current.rate - previous.rate
    if difference > tolerance:
        return Trend.IMPROVING
    if difference < -tolerance:
        return Trend.DECLINING
    return Trend.STABLE
