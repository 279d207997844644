"""Per-table schema inspection.

Reads column metadata from the shape of a zero-row projection of the table
(``SELECT * FROM table LIMIT 0``) instead of a dedicated catalog query, so
the result matches exactly what a subsequent read or insert will see.

Metadata is never cached: callers inspect again on every run.

Usage:
    from table_backup.schema.inspector import inspect_table

    columns = await inspect_table(client, "public.orders")
    columns["total"].native_type   # 'numeric'
"""

import logging

from table_backup.adapters.base import DatabaseClient
from table_backup.errors import QueryError, SchemaError
from table_backup.schema.models import ColumnInfo

logger = logging.getLogger(__name__)


async def inspect_table(client: DatabaseClient, table: str) -> dict[str, ColumnInfo]:
    """Return a mapping of column name to ``ColumnInfo`` for ``table``.

    Columns keep their ordinal order.

    Args:
        client: Database client implementing ``DatabaseClient``.
        table: Table identifier (bare or schema-qualified).

    Returns:
        Dict mapping column name to its native type, size, precision and
        scale.

    Raises:
        SchemaError: If the table does not exist, is inaccessible, or
            exposes no columns.

    Example:
        columns = await inspect_table(client, "customers")
        for name, col in columns.items():
            print(name, col.native_type, col.size)
    """
    try:
        described = await client.describe(table)
    except QueryError as e:
        raise SchemaError(table, f"Schema for {table} unavailable: {e}") from e

    if not described:
        raise SchemaError(table, f"Table {table} exposes no columns")

    columns = {col.name: col for col in described}
    logger.debug("Inspected %s: %d columns", table, len(columns))
    return columns
