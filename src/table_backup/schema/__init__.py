"""Schema metadata models and generic ordering.

Provides column and foreign-key models, the closed ``TypeKind``
enumeration, table-name helpers, and the generic ``topological_sort``.
Database-facing helpers live in ``table_backup.schema.inspector`` and
``table_backup.schema.dependencies``.

Usage:
    from table_backup.schema import ColumnInfo, TypeKind, topological_sort
    from table_backup.schema.inspector import inspect_table
    from table_backup.schema.dependencies import build_dependency_graph
"""

from table_backup.schema.models import (
    ColumnInfo,
    ForeignKeyRef,
    qualify_table_name,
    split_table_name,
)
from table_backup.schema.toposort import topological_sort
from table_backup.schema.types import TypeKind, kind_of

__all__ = [
    "topological_sort",
    "ColumnInfo",
    "ForeignKeyRef",
    "qualify_table_name",
    "split_table_name",
    "TypeKind",
    "kind_of",
]
