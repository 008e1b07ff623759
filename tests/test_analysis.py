"""
Tests for dependency checks.
"""

from unittest.mock import patch

from gh_projects_analyzer.analysis import (
    DependencyCriteria,
    check_status_consistency,
    find_cycles,
    find_missing_dependencies,
    run_dependency_checks,
)
from gh_projects_analyzer.dependency_graph import build_dependency_graph
from gh_projects_analyzer.models import Item, ItemState


def _item(item_id: str, status: str | None = None, **kwargs) -> Item:
    field_values = {"Status": status} if status else {}
    return Item(id=item_id, field_values=field_values, **kwargs)


# --- Cycles ---


def test_self_blocking_item_is_one_cycle():
    """Test A blocks A is reported as a single one-element cycle."""
    graph = build_dependency_graph([_item("A", blocks=("A",))])

    report = find_cycles(graph)

    assert report.has_cycles is True
    assert report.cycles == [["A"]]


def test_three_cycle_reported_once_regardless_of_declaration():
    """Test A->B->C->A yields exactly one cycle for any declaration style."""
    layouts = [
        [_item("A", blocks=("B",)), _item("B", blocks=("C",)), _item("C", blocks=("A",))],
        [
            _item("A", blocked_by=("C",)),
            _item("B", blocked_by=("A",)),
            _item("C", blocked_by=("B",)),
        ],
        [_item("C", blocks=("A",)), _item("B", blocks=("C",)), _item("A", blocks=("B",))],
    ]

    for items in layouts:
        report = find_cycles(build_dependency_graph(items))
        assert len(report.cycles) == 1
        cycle = report.cycles[0]
        assert sorted(cycle) == ["A", "B", "C"]
        # Consecutive members are real edges, including the closing one
        graph = build_dependency_graph(items)
        for source, target in zip(cycle, cycle[1:] + cycle[:1]):
            assert graph.has_edge(source, target)


def test_no_rotations_or_duplicates():
    """Test overlapping cycles are each listed once."""
    graph = build_dependency_graph(
        [
            _item("A", blocks=("B",)),
            _item("B", blocks=("A", "C")),
            _item("C", blocks=("A",)),
        ]
    )

    report = find_cycles(graph)

    keys = set()
    for cycle in report.cycles:
        start = cycle.index(min(cycle))
        keys.add(tuple(cycle[start:] + cycle[:start]))
    assert len(keys) == len(report.cycles)
    assert sorted(sorted(c) for c in report.cycles) == [["A", "B"], ["A", "B", "C"]]


def test_acyclic_graph_has_no_cycles():
    """Test a DAG reports no cycles."""
    graph = build_dependency_graph(
        [_item("A", blocks=("B", "C")), _item("B", blocks=("C",)), _item("C")]
    )
    assert find_cycles(graph)._asdict() == {"has_cycles": False, "cycles": []}


# --- Missing ---


def test_missing_dependencies_reference_absent_ids_only():
    """Test every reported target is absent from the snapshot."""
    items = [
        _item("A", blocks=("B", "GONE")),
        _item("B", related_to=("ALSO_GONE",)),
    ]
    graph = build_dependency_graph(items)

    report = find_missing_dependencies(graph)

    assert report.has_missing is True
    assert report.missing == [
        {"item_id": "A", "kind": "blocks", "target_id": "GONE"},
        {"item_id": "B", "kind": "related_to", "target_id": "ALSO_GONE"},
    ]
    snapshot_ids = {item.id for item in items}
    assert all(entry["target_id"] not in snapshot_ids for entry in report.missing)


def test_missing_dependencies_empty_when_all_present():
    """Test a closed set of references reports nothing missing."""
    graph = build_dependency_graph([_item("A", blocks=("B",)), _item("B")])
    assert find_missing_dependencies(graph)._asdict() == {
        "has_missing": False,
        "missing": [],
    }


# --- Status ---


def test_blocked_item_ahead_of_unfinished_blocker_is_inconsistent():
    """Test A (todo) blocks B (done) is one inconsistency."""
    graph = build_dependency_graph(
        [_item("A", "Todo", blocks=("B",)), _item("B", "Done")]
    )

    report = check_status_consistency(graph)

    assert report.has_inconsistencies is True
    assert report.inconsistencies == [
        {
            "blocker_id": "A",
            "blocked_id": "B",
            "blocker_status": "todo",
            "blocked_status": "done",
        }
    ]


def test_finished_blocker_is_consistent():
    """Test a done blocker never causes an inconsistency."""
    graph = build_dependency_graph(
        [_item("A", "Done", blocks=("B",)), _item("B", "Done")]
    )
    assert check_status_consistency(graph).has_inconsistencies is False


def test_closed_blocker_with_stale_status_is_consistent():
    """Test a closed blocker counts as finished even if its Status lags."""
    graph = build_dependency_graph(
        [
            _item("A", "In Progress", state=ItemState.CLOSED, blocks=("B",)),
            _item("B", "Done"),
        ]
    )
    assert check_status_consistency(graph).inconsistencies == []


def test_blocked_item_behind_blocker_is_consistent():
    """Test a blocked item that has not moved past its blocker is fine."""
    graph = build_dependency_graph(
        [_item("A", "In Progress", blocks=("B",)), _item("B", "Todo")]
    )
    assert check_status_consistency(graph).inconsistencies == []


def test_unrecognized_status_is_skipped():
    """Test items without a known status are not compared."""
    graph = build_dependency_graph(
        [_item("A", "Icebox", blocks=("B",)), _item("B", "Done"), _item("C", blocks=("B",))]
    )
    assert check_status_consistency(graph).inconsistencies == []


# --- Runner ---


def test_run_dependency_checks_only_requested_keys():
    """Test omitted criteria produce no key in the report."""
    graph = build_dependency_graph([_item("A", blocks=("A",))])

    report = run_dependency_checks(graph, DependencyCriteria(check_cycles=True))

    assert set(report) == {"cycles"}
    assert report["cycles"] == {"has_cycles": True, "cycles": [["A"]]}


def test_run_dependency_checks_no_criteria():
    """Test no requested checks yields an empty report."""
    graph = build_dependency_graph([_item("A")])
    assert run_dependency_checks(graph, DependencyCriteria()) == {}


def test_run_dependency_checks_empty_snapshot():
    """Test an empty snapshot reports nothing wrong."""
    report = run_dependency_checks(
        build_dependency_graph([]),
        DependencyCriteria(check_cycles=True, check_missing=True, check_status=True),
    )
    assert report == {
        "cycles": {"has_cycles": False, "cycles": []},
        "missing": {"has_missing": False, "missing": []},
        "status": {"has_inconsistencies": False, "inconsistencies": []},
    }


def test_run_dependency_checks_isolates_failures():
    """Test a failing check is reported as an error while others still run."""
    graph = build_dependency_graph([_item("A", blocks=("X",))])
    criteria = DependencyCriteria.from_mapping(
        {"check_cycles": True, "check_missing": True}
    )

    def boom(_graph):
        raise RuntimeError("boom")

    with patch(
        "gh_projects_analyzer.analysis._CHECKS",
        [
            ("check_cycles", "cycles", boom),
            ("check_missing", "missing", find_missing_dependencies),
            ("check_status", "status", check_status_consistency),
        ],
    ):
        report = run_dependency_checks(graph, criteria)

    assert report["cycles"] == {"error": "boom"}
    assert report["missing"]["has_missing"] is True
    assert "status" not in report
