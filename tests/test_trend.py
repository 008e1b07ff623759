"""
Tests for completion trend analysis.
"""

from datetime import datetime, timedelta, timezone

from gh_projects_analyzer.models import Item, ItemState
from gh_projects_analyzer.trend import (
    TimeWindow,
    Trend,
    classify_trend,
    count_window_completion,
    generate_time_windows,
)

NOW = datetime(2024, 6, 30, tzinfo=timezone.utc)


def _days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def _closed(created_days_ago: float, closed_days_ago: float) -> Item:
    return Item(
        id=f"closed-{created_days_ago}-{closed_days_ago}",
        state=ItemState.CLOSED,
        created_at=_days_ago(created_days_ago),
        closed_at=_days_ago(closed_days_ago),
    )


def _open(created_days_ago: float, suffix: str = "") -> Item:
    return Item(id=f"open-{created_days_ago}{suffix}", created_at=_days_ago(created_days_ago))


def test_generate_time_windows_oldest_first():
    """Test windows are adjacent and ordered from oldest to newest."""
    windows = generate_time_windows(2, 14, NOW)

    assert len(windows) == 2
    assert windows[1].end == NOW
    assert windows[1].start == _days_ago(14)
    assert windows[0].end == windows[1].start
    assert windows[0].start == _days_ago(28)
    assert windows[1].label == "2024-06-16..2024-06-30"


def test_count_window_completion():
    """Test closed and active counts for one window."""
    window = TimeWindow(start=_days_ago(14), end=NOW, label="current")
    items = [
        _closed(20, 5),  # closed in window
        _closed(40, 20),  # closed before window
        _open(30),  # open throughout
        _open(1, "-new"),  # created in window
        Item(id="no-created"),  # cannot be placed
        Item(id="no-closed", state=ItemState.CLOSED, created_at=_days_ago(3)),
    ]

    completion = count_window_completion(items, window)

    assert completion.closed == 1
    assert completion.active == 3
    assert completion.rate == 1 / 3


def test_empty_window_has_no_rate():
    """Test a window without active items has no rate."""
    window = TimeWindow(start=_days_ago(14), end=NOW, label="current")
    assert count_window_completion([], window).rate is None


def test_trend_improving():
    """Test more closing in the latest window is improving."""
    items = [
        _closed(20, 10),
        _closed(20, 8),
        _open(40),
    ]
    assert classify_trend(items, 14, 0.05, NOW) == Trend.IMPROVING


def test_trend_declining():
    """Test less closing in the latest window is declining."""
    items = [
        _closed(40, 20),
        _closed(40, 18),
        _open(40),
    ]
    assert classify_trend(items, 14, 0.05, NOW) == Trend.DECLINING


def test_trend_stable_within_tolerance():
    """Test equal rates in both windows are stable."""
    items = [
        _closed(40, 20),
        _closed(40, 5),
        _open(40),
        _open(40, "-b"),
    ]
    # previous: 1 closed / 4 active, current: 1 closed / 3 active
    assert classify_trend(items, 14, 0.1, NOW) == Trend.STABLE


def test_trend_stable_without_data():
    """Test missing data in either window is stable."""
    assert classify_trend([], 14, 0.05, NOW) == Trend.STABLE
    assert classify_trend([_open(3)], 14, 0.05, NOW) == Trend.STABLE
