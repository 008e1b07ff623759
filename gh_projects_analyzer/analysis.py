"""
Dependency checks over the canonical blocks graph.

Each check is independent; `run_dependency_checks` only evaluates the ones
requested and isolates failures so one broken check never hides the others.
"""

from typing import Any, Callable, Mapping, NamedTuple

from rich.console import Console

from gh_projects_analyzer.dependency_graph import DependencyGraph

console = Console(stderr=True)


class DependencyCriteria(NamedTuple):
    """Which dependency checks to run."""

    check_cycles: bool = False
    check_missing: bool = False
    check_status: bool = False

    @classmethod
    def from_mapping(cls, criteria: Mapping[str, Any] | None) -> "DependencyCriteria":
        criteria = criteria or {}
        return cls(
            check_cycles=bool(criteria.get("check_cycles")),
            check_missing=bool(criteria.get("check_missing")),
            check_status=bool(criteria.get("check_status")),
        )


class CycleReport(NamedTuple):
    has_cycles: bool
    cycles: list[list[str]]


class MissingReport(NamedTuple):
    has_missing: bool
    missing: list[dict[str, str]]


class StatusReport(NamedTuple):
    has_inconsistencies: bool
    inconsistencies: list[dict[str, str]]


def _rotation_key(cycle: list[str], order: dict[str, int]) -> tuple[str, ...]:
    """Rotate a cycle so its earliest node (snapshot order) comes first."""
    pivot = min(range(len(cycle)), key=lambda i: order[cycle[i]])
    return tuple(cycle[pivot:] + cycle[:pivot])


def find_cycles(graph: DependencyGraph) -> CycleReport:
    """
    Find every simple cycle in the blocks graph.

    Only strongly connected components that actually contain a cycle are
    searched. From each start node a depth-first walk keeps the current path
    on a stack and only visits component members that come after the start
    in snapshot order, so every cycle is closed exactly once: by the edge
    that leads back to its earliest member. A self-blocking item is a
    one-element cycle.

    Returns:
        CycleReport with cycles as ordered id lists, without repeating the
        first id at the end.
    """
    order = {node: position for position, node in enumerate(graph.nodes)}
    cycles: list[list[str]] = []
    seen: set[tuple[str, ...]] = set()

    def record(cycle: list[str]) -> None:
        key = _rotation_key(cycle, order)
        if key not in seen:
            seen.add(key)
            cycles.append(cycle)

    components = sorted(
        graph.cyclic_components(), key=lambda c: min(order[n] for n in c)
    )
    for component in components:
        members = sorted(component, key=order.__getitem__)
        for start in members:
            allowed = {node for node in members if order[node] > order[start]}
            path = [start]
            on_path = {start}
            frames = [iter(graph.successors(start))]
            while frames:
                child = next(frames[-1], None)
                if child is None:
                    frames.pop()
                    on_path.discard(path.pop())
                    continue
                if child == start:
                    record(list(path))
                elif child in allowed and child not in on_path:
                    path.append(child)
                    on_path.add(child)
                    frames.append(iter(graph.successors(child)))

    return CycleReport(has_cycles=bool(cycles), cycles=cycles)


def find_missing_dependencies(graph: DependencyGraph) -> MissingReport:
    """Report relationships that point at items absent from the snapshot."""
    order = {node: position for position, node in enumerate(graph.nodes)}
    # sorted() is stable, so declaration order survives within an item
    references = sorted(graph.dangling, key=lambda ref: order[ref.item_id])
    missing = [
        {
            "item_id": ref.item_id,
            "kind": ref.kind.value,
            "target_id": ref.target_id,
        }
        for ref in references
    ]
    return MissingReport(has_missing=bool(missing), missing=missing)


def check_status_consistency(graph: DependencyGraph) -> StatusReport:
    """
    Flag blocked items that are further along than an unfinished blocker.

    For every edge A blocks B: when A is still open work and B's status ranks
    above A's, the pair is inconsistent. A blocker counts as finished when
    its status is done or its issue/PR is closed, whatever the Status field
    still says. Items without a recognizable status are skipped.
    """
    inconsistencies = []
    for blocker_id, blocked_id in graph.edges():
        blocker = graph.items_by_id[blocker_id]
        if blocker.is_done:
            continue
        blocker_status = blocker.status
        blocked_status = graph.items_by_id[blocked_id].status
        if blocker_status is None or blocked_status is None:
            continue
        if blocked_status.rank > blocker_status.rank:
            inconsistencies.append(
                {
                    "blocker_id": blocker_id,
                    "blocked_id": blocked_id,
                    "blocker_status": blocker_status.value,
                    "blocked_status": blocked_status.value,
                }
            )
    return StatusReport(
        has_inconsistencies=bool(inconsistencies), inconsistencies=inconsistencies
    )


_CHECKS: list[tuple[str, str, Callable[[DependencyGraph], Any]]] = [
    ("check_cycles", "cycles", find_cycles),
    ("check_missing", "missing", find_missing_dependencies),
    ("check_status", "status", check_status_consistency),
]


def run_dependency_checks(
    graph: DependencyGraph, criteria: DependencyCriteria
) -> dict[str, dict[str, Any]]:
    """
    Run the requested checks against a prebuilt graph.

    Keys are present only for requested checks. A check that raises is
    reported as {"error": message} while the others still run.
    """
    report: dict[str, dict[str, Any]] = {}
    for flag, key, check in _CHECKS:
        if not getattr(criteria, flag):
            continue
        try:
            report[key] = check(graph)._asdict()
        except Exception as e:
            console.print(f"  [yellow]⚠️  Dependency check '{key}' failed: {e}[/yellow]")
            report[key] = {"error": str(e)}
    return report
