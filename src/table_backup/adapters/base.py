"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol that the backup engine consumes.
All methods are ``async def`` -- the library is async-first, but the engine
awaits every call sequentially (one table, one record at a time).

The protocol covers exactly three capabilities:

1. Read a table: ``describe()`` for the result shape, ``iter_rows()`` to
   stream rows in that column order.
2. Write a table: ``insert()`` with typed, sized parameters and
   ``delete_all()``, both reporting affected-row counts.
3. Enumerate foreign keys: ``foreign_keys()``.

Usage:
    from table_backup.adapters.base import DatabaseClient, Parameter

    async def copy_one(client: DatabaseClient) -> None:
        columns = await client.describe("public.customers")
        async for row in client.iter_rows("public.customers"):
            ...
        await client.insert(
            "public.customers",
            [Parameter(column="name", value="Ada", native_type="text")],
        )
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol

from table_backup.schema.models import ColumnInfo, ForeignKeyRef


@dataclass
class Parameter:
    """One typed, sized value for a single-row insert.

    Example:
        p = Parameter(column="total", value=Decimal("9.99"), native_type="numeric")
    """

    column: str
    value: Any
    native_type: str
    size: int | None = None


class DatabaseClient(Protocol):
    """Database collaborator interface consumed by the backup engine.

    Implementations translate driver errors into the ``table_backup.errors``
    taxonomy: ``QueryError`` for reads and deletes, ``RowWriteError`` for
    inserts.
    """

    async def describe(self, table: str) -> list[ColumnInfo]:
        """Return the column shape of ``SELECT * FROM table``.

        Raises:
            QueryError: If the table does not exist or cannot be read.
        """
        ...

    def iter_rows(self, table: str) -> AsyncIterator[tuple]:
        """Stream every row of ``table`` in ``describe()`` column order.

        Raises:
            QueryError: If the query fails.
        """
        ...

    async def insert(self, table: str, params: list[Parameter]) -> int:
        """Insert a single row and return the affected-row count.

        An empty ``params`` list inserts a row of column defaults.

        Raises:
            RowWriteError: If the insert fails.
        """
        ...

    async def delete_all(self, table: str) -> int:
        """Delete every row of ``table`` and return the affected-row count.

        Raises:
            QueryError: If the delete fails.
        """
        ...

    async def foreign_keys(self) -> list[ForeignKeyRef]:
        """Return every foreign-key relationship visible to the connection."""
        ...

    async def list_tables(self, schema_name: str = "public") -> list[str]:
        """Return schema-qualified names of all base tables in ``schema_name``."""
        ...
