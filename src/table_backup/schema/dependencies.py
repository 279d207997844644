"""Foreign-key dependency graph for the tables of one operation.

Builds ``table -> [referenced tables]`` from the live catalog on every run,
restricted to the tables taking part in the current backup or restore.

Usage:
    from table_backup.schema.dependencies import build_dependency_graph, dependency_order

    graph = await build_dependency_graph(client, ["orders", "customers"])
    # {"orders": ["customers"], "customers": []}

    delete_order = dependency_order(["orders", "customers"], graph)
    insert_order = list(reversed(delete_order))
"""

import logging

from table_backup.adapters.base import DatabaseClient
from table_backup.schema.models import qualify_table_name
from table_backup.schema.toposort import topological_sort

logger = logging.getLogger(__name__)


async def build_dependency_graph(
    client: DatabaseClient,
    tables: list[str],
    default_schema: str = "public",
) -> dict[str, list[str]]:
    """Build the dependency graph for ``tables`` from foreign-key metadata.

    Keys and values use the identifiers exactly as given in ``tables``;
    bare names are matched against the catalog's schema-qualified names
    through ``default_schema``.  Foreign keys whose dependent or referenced
    table is outside ``tables`` are dropped.  Self-references are dropped
    too: a table's own rows cannot be ordered at table granularity.

    Args:
        client: Database client implementing ``DatabaseClient``.
        tables: Participating table identifiers.
        default_schema: Schema assumed for bare table names.

    Returns:
        Dict mapping each table to the tables it references, listed in
        ``tables`` order.
    """
    by_qualified = {qualify_table_name(t, default_schema): t for t in tables}
    position = {t: i for i, t in enumerate(tables)}
    referenced: dict[str, set[str]] = {t: set() for t in tables}

    for fk in await client.foreign_keys():
        dependent = by_qualified.get(fk.dependent)
        target = by_qualified.get(fk.referenced)
        if dependent is None or target is None:
            continue
        if dependent == target:
            logger.debug("Ignoring self-reference %s on %s", fk.constraint, dependent)
            continue
        referenced[dependent].add(target)

    return {
        table: sorted(targets, key=position.__getitem__)
        for table, targets in referenced.items()
    }


def dependency_order(tables: list[str], graph: dict[str, list[str]]) -> list[str]:
    """Order ``tables`` dependents-first (delete order).

    Reverse the result for insert order (referenced tables first).

    Raises:
        CyclicDependencyError: If the foreign keys form a cycle.
    """
    return topological_sort(tables, lambda t: graph.get(t, ()))
