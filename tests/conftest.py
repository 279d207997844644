"""Shared fixtures: an in-memory ``DatabaseClient`` that enforces foreign keys."""

from dataclasses import dataclass, field
from typing import Any

import pytest

from table_backup.adapters.base import Parameter
from table_backup.errors import QueryError, RowWriteError
from table_backup.schema.models import ColumnInfo, ForeignKeyRef, qualify_table_name


@dataclass
class FakeForeignKey:
    constraint: str
    table: str
    column: str
    referenced_table: str
    referenced_column: str


@dataclass
class FakeTable:
    columns: list[ColumnInfo]
    primary_key: str | None = None
    rows: list[dict[str, Any]] = field(default_factory=list)


class FakeDatabase:
    """In-memory implementation of the ``DatabaseClient`` protocol.

    Tables are keyed by schema-qualified name; bare names resolve to
    ``public``.  Inserts reject unknown columns, duplicate primary keys
    and dangling foreign keys; deletes reject rows still referenced.
    ``calls`` records ``(operation, table)`` in execution order.
    """

    def __init__(self) -> None:
        self.tables: dict[str, FakeTable] = {}
        self.fks: list[FakeForeignKey] = []
        self.calls: list[tuple[str, str]] = []

    # -- setup helpers -------------------------------------------------

    def add_table(
        self,
        name: str,
        columns: list[tuple[str, str]],
        primary_key: str | None = None,
        rows: list[dict[str, Any]] | None = None,
    ) -> None:
        self.tables[qualify_table_name(name)] = FakeTable(
            columns=[ColumnInfo(name=n, native_type=t) for n, t in columns],
            primary_key=primary_key,
            rows=list(rows or []),
        )

    def add_fk(
        self,
        table: str,
        column: str,
        referenced_table: str,
        referenced_column: str = "id",
        constraint: str | None = None,
    ) -> None:
        self.fks.append(
            FakeForeignKey(
                constraint=constraint or f"{table}_{column}_fkey",
                table=qualify_table_name(table),
                column=column,
                referenced_table=qualify_table_name(referenced_table),
                referenced_column=referenced_column,
            )
        )

    def rows(self, name: str) -> list[dict[str, Any]]:
        return self.tables[qualify_table_name(name)].rows

    def _table(self, name: str, error: type[Exception]) -> FakeTable:
        key = qualify_table_name(name)
        if key not in self.tables:
            raise error(f'relation "{name}" does not exist')
        return self.tables[key]

    async def __aenter__(self) -> "FakeDatabase":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    # -- DatabaseClient ------------------------------------------------

    async def describe(self, table: str) -> list[ColumnInfo]:
        self.calls.append(("describe", table))
        return list(self._table(table, QueryError).columns)

    async def iter_rows(self, table: str):
        self.calls.append(("select", table))
        data = self._table(table, QueryError)
        for row in data.rows:
            yield tuple(row.get(col.name) for col in data.columns)

    async def insert(self, table: str, params: list[Parameter]) -> int:
        self.calls.append(("insert", table))
        data = self._table(table, RowWriteError)
        row = {p.column: p.value for p in params}

        known = {col.name for col in data.columns}
        unknown = set(row) - known
        if unknown:
            raise RowWriteError(f"column {sorted(unknown)[0]} does not exist")

        if data.primary_key is not None:
            key = row.get(data.primary_key)
            if any(r.get(data.primary_key) == key for r in data.rows):
                raise RowWriteError(f"duplicate key value violates unique constraint on {table}")

        for fk in self.fks:
            if fk.table != qualify_table_name(table):
                continue
            value = row.get(fk.column)
            if value is None:
                continue
            parents = self.tables[fk.referenced_table].rows
            if not any(p.get(fk.referenced_column) == value for p in parents):
                raise RowWriteError(
                    f'insert on "{table}" violates foreign key constraint "{fk.constraint}"'
                )

        data.rows.append({col.name: row.get(col.name) for col in data.columns})
        return 1

    async def delete_all(self, table: str) -> int:
        self.calls.append(("delete", table))
        data = self._table(table, QueryError)
        key = qualify_table_name(table)
        for fk in self.fks:
            if fk.referenced_table != key or fk.table == key:
                continue
            if self.tables[fk.table].rows and data.rows:
                raise QueryError(
                    f'delete on "{table}" violates foreign key constraint "{fk.constraint}"'
                )
        count = len(data.rows)
        data.rows.clear()
        return count

    async def foreign_keys(self) -> list[ForeignKeyRef]:
        return [
            ForeignKeyRef(
                constraint=fk.constraint,
                dependent=fk.table,
                referenced=fk.referenced_table,
            )
            for fk in self.fks
        ]

    async def list_tables(self, schema_name: str = "public") -> list[str]:
        return [name for name in self.tables if name.split(".", 1)[0] == schema_name]


def make_shop(with_rows: bool = True) -> FakeDatabase:
    """Customers/Orders database with ``orders.customer_id -> customers.id``."""
    db = FakeDatabase()
    db.add_table(
        "public.customers",
        [("id", "int4"), ("name", "varchar"), ("active", "bool"), ("photo", "bytea")],
        primary_key="id",
        rows=[
            {"id": 1, "name": "Ada", "active": True, "photo": b"\x89PNG\x00\x01"},
            {"id": 2, "name": "Grace", "active": False, "photo": None},
        ] if with_rows else [],
    )
    db.add_table(
        "public.orders",
        [("id", "int4"), ("customer_id", "int4"), ("total", "numeric")],
        primary_key="id",
        rows=[
            {"id": 10, "customer_id": 1, "total": "9.99"},
            {"id": 11, "customer_id": 1, "total": "20.00"},
            {"id": 12, "customer_id": 2, "total": "5.50"},
        ] if with_rows else [],
    )
    db.add_fk("public.orders", "customer_id", "public.customers")
    return db


@pytest.fixture
def shop() -> FakeDatabase:
    return make_shop()


@pytest.fixture
def empty_shop() -> FakeDatabase:
    return make_shop(with_rows=False)
