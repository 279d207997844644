"""Generic topological sort (Kahn's algorithm).

Pure logic -- no I/O, no database connections.

For every edge ``a -> b`` (``b in edges(a)``), ``a`` appears before ``b``
in the result: a node comes before the nodes it depends on.  For tables
whose edges point at referenced tables, the result is a safe delete order
and its reverse is a safe insert order.

Usage:
    from table_backup.schema.toposort import topological_sort

    deps = {"orders": ["customers"], "customers": []}
    order = topological_sort(deps, lambda t: deps[t])
    # ['orders', 'customers']
"""

from collections import deque
from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

from table_backup.errors import CyclicDependencyError

T = TypeVar("T", bound=Hashable)


def topological_sort(nodes: Iterable[T], edges: Callable[[T], Iterable[T]]) -> list[T]:
    """Order ``nodes`` so that every node precedes the nodes it points to.

    A node is ready once no remaining node has an edge into it.  Ready
    nodes are processed first-in first-out, seeded in input order, so the
    result is deterministic.  Edges to nodes outside ``nodes`` are ignored.

    Args:
        nodes: Nodes to order.  Duplicates are collapsed.
        edges: Returns the outgoing edge targets (dependencies) of a node.

    Returns:
        Total order of ``nodes``.

    Raises:
        CyclicDependencyError: If the graph has a cycle (including a node
            pointing at itself).  ``remaining`` lists the unordered nodes in
            input order.

    Examples:
        >>> topological_sort(["a", "b", "c"], {"a": ["b"], "b": ["c"], "c": []}.get)
        ['a', 'b', 'c']
        >>> topological_sort(["x"], lambda n: ["x"])
        Traceback (most recent call last):
        ...
        table_backup.errors.CyclicDependencyError: Circular dependencies between: x
    """
    pending: list[T] = list(dict.fromkeys(nodes))
    members = set(pending)

    targets: dict[T, list[T]] = {
        node: [t for t in dict.fromkeys(edges(node) or ()) if t in members]
        for node in pending
    }

    # Count of not-yet-ordered nodes pointing at each node
    incoming: dict[T, int] = {node: 0 for node in pending}
    for node in pending:
        for target in targets[node]:
            incoming[target] += 1

    queue: deque[T] = deque(node for node in pending if incoming[node] == 0)
    ordered: list[T] = []

    while queue:
        node = queue.popleft()
        ordered.append(node)
        for target in targets[node]:
            incoming[target] -= 1
            if incoming[target] == 0:
                queue.append(target)

    if len(ordered) != len(pending):
        done = set(ordered)
        raise CyclicDependencyError([node for node in pending if node not in done])

    return ordered
