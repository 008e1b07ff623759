"""
Dependency graph over project items.

Folds `blocks` and `blocked_by` declarations into one canonical direction
(source blocks target), keeps `related_to` as an undirected annotation and
records references to items missing from the snapshot instead of failing.
"""

from typing import Iterable, NamedTuple

from gh_projects_analyzer.models import Item, RelationshipKind


class DanglingReference(NamedTuple):
    """A relationship pointing at an item id absent from the snapshot."""

    item_id: str
    kind: RelationshipKind
    target_id: str


class DependencyGraph:
    """Canonical "blocks" graph keyed by item id."""

    def __init__(self):
        self.items_by_id: dict[str, Item] = {}
        self._successors: dict[str, list[str]] = {}
        self._predecessors: dict[str, list[str]] = {}
        self._edge_keys: set[tuple[str, str]] = set()
        self.related: set[frozenset[str]] = set()
        self.dangling: list[DanglingReference] = []
        self._dangling_keys: set[DanglingReference] = set()

    # --- construction ---

    def add_node(self, item: Item) -> bool:
        if item.id in self.items_by_id:
            return False
        self.items_by_id[item.id] = item
        self._successors[item.id] = []
        self._predecessors[item.id] = []
        return True

    def add_edge(self, source: str, target: str) -> bool:
        """Add `source blocks target`; returns False for a duplicate."""
        key = (source, target)
        if key in self._edge_keys:
            return False
        self._edge_keys.add(key)
        self._successors[source].append(target)
        self._predecessors[target].append(source)
        return True

    def add_dangling(self, reference: DanglingReference) -> None:
        if reference not in self._dangling_keys:
            self._dangling_keys.add(reference)
            self.dangling.append(reference)

    # --- queries ---

    @property
    def nodes(self) -> list[str]:
        return list(self.items_by_id)

    def __len__(self) -> int:
        return len(self.items_by_id)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self.items_by_id

    def successors(self, item_id: str) -> list[str]:
        return self._successors.get(item_id, [])

    def predecessors(self, item_id: str) -> list[str]:
        return self._predecessors.get(item_id, [])

    def edges(self) -> list[tuple[str, str]]:
        return [
            (source, target)
            for source, targets in self._successors.items()
            for target in targets
        ]

    def has_edge(self, source: str, target: str) -> bool:
        return (source, target) in self._edge_keys

    def strongly_connected_components(self) -> list[list[str]]:
        """
        Tarjan's algorithm, iterative so deep chains do not hit the
        recursion limit. Components come out in reverse topological order.
        """
        index_of: dict[str, int] = {}
        lowlink: dict[str, int] = {}
        on_stack: set[str] = set()
        stack: list[str] = []
        components: list[list[str]] = []
        counter = 0

        for root in self.items_by_id:
            if root in index_of:
                continue
            work: list[tuple[str, int]] = [(root, 0)]
            while work:
                node, child_pos = work.pop()
                if child_pos == 0:
                    index_of[node] = lowlink[node] = counter
                    counter += 1
                    stack.append(node)
                    on_stack.add(node)
                successors = self._successors[node]
                descended = False
                for pos in range(child_pos, len(successors)):
                    child = successors[pos]
                    if child not in index_of:
                        work.append((node, pos + 1))
                        work.append((child, 0))
                        descended = True
                        break
                    if child in on_stack:
                        lowlink[node] = min(lowlink[node], index_of[child])
                if descended:
                    continue
                if lowlink[node] == index_of[node]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    components.append(component)
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])
        return components

    def cyclic_components(self) -> list[list[str]]:
        """Components that contain at least one cycle."""
        return [
            component
            for component in self.strongly_connected_components()
            if len(component) > 1 or self.has_edge(component[0], component[0])
        ]

    def cyclic_nodes(self) -> set[str]:
        """Ids of items participating in any cycle."""
        return {node for component in self.cyclic_components() for node in component}

    def longest_chain_length(self) -> int:
        """
        Number of edges on the longest blocking chain.

        Cycles have no finite longest simple path in general, so each strongly
        connected component is collapsed to one node first.
        """
        components = self.strongly_connected_components()
        component_of = {
            node: position
            for position, component in enumerate(components)
            for node in component
        }
        # Tarjan emits sinks first, so walking the list forward sees every
        # successor component before its predecessors.
        longest = [0] * len(components)
        for position, component in enumerate(components):
            best = 0
            for node in component:
                for child in self._successors[node]:
                    child_position = component_of[child]
                    if child_position != position:
                        best = max(best, longest[child_position] + 1)
            longest[position] = best
        return max(longest, default=0)


def build_dependency_graph(items: Iterable[Item]) -> DependencyGraph:
    """
    Build the canonical dependency graph for a snapshot.

    Args:
        items: Snapshot items in fetch order.

    Returns:
        DependencyGraph whose nodes are the snapshot's item ids. Building
        never fails on references to unknown items; those are collected in
        `graph.dangling`.
    """
    graph = DependencyGraph()
    ordered: list[Item] = []
    for item in items:
        # First occurrence of an id wins
        if graph.add_node(item):
            ordered.append(item)

    for item in ordered:
        for target in item.blocks:
            if target in graph:
                graph.add_edge(item.id, target)
            else:
                graph.add_dangling(
                    DanglingReference(item.id, RelationshipKind.BLOCKS, target)
                )
        for source in item.blocked_by:
            if source in graph:
                graph.add_edge(source, item.id)
            else:
                graph.add_dangling(
                    DanglingReference(item.id, RelationshipKind.BLOCKED_BY, source)
                )
        for other in item.related_to:
            if other in graph:
                graph.related.add(frozenset((item.id, other)))
            else:
                graph.add_dangling(
                    DanglingReference(item.id, RelationshipKind.RELATED_TO, other)
                )

    return graph
