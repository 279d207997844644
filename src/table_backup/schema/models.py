"""Pydantic models for live schema metadata.

This module contains schema-domain models:
- ``ColumnInfo``: shape of one result column (name, native type, size,
  precision, scale), read fresh from the database on every run
- ``ForeignKeyRef``: one foreign-key relationship from the catalog
"""

from pydantic import BaseModel

from table_backup.schema.types import TypeKind, kind_of


class ColumnInfo(BaseModel):
    """Shape of a single table column.

    Example:
        >>> col = ColumnInfo(name="id", native_type="int4", size=4)
        >>> col.kind
        <TypeKind.INTEGER: 'integer'>
    """

    name: str
    native_type: str
    size: int | None = None        # display size (or internal size when unknown)
    precision: int | None = None
    scale: int | None = None

    @property
    def kind(self) -> TypeKind:
        """Codec kind of this column's native type."""
        return kind_of(self.native_type)


class ForeignKeyRef(BaseModel):
    """A foreign key: ``dependent`` holds the constrained column,
    ``referenced`` holds the unique/primary key.

    Table names are schema-qualified (``public.orders``).
    """

    constraint: str
    dependent: str
    referenced: str


# ============================================================================
# Table identifiers
# ============================================================================


def split_table_name(table: str) -> tuple[str, ...]:
    """Split ``schema.table`` into its parts (``("schema", "table")``).

    A bare name yields a one-element tuple.  Surrounding double quotes are
    stripped from each part.
    """
    parts = tuple(part.strip().strip('"') for part in table.split(".", 1))
    if not all(parts):
        raise ValueError(f"Invalid table identifier: {table!r}")
    return parts


def qualify_table_name(table: str, default_schema: str = "public") -> str:
    """Return ``table`` as ``schema.table``, adding ``default_schema`` when bare.

    Example:
        >>> qualify_table_name("orders")
        'public.orders'
        >>> qualify_table_name("sales.orders")
        'sales.orders'
    """
    parts = split_table_name(table)
    if len(parts) == 1:
        return f"{default_schema}.{parts[0]}"
    return ".".join(parts)
