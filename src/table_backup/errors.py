"""Error taxonomy for backup and restore.

Fatal errors (``SchemaError``, ``CyclicDependencyError``,
``ArtifactFormatError``, ``QueryError``) abort the current run.  Row-level
errors (``FieldDecodeError``, ``RowWriteError``) are collected by the
import executor and reported at the end.  ``BlobReadError`` is recovered
locally by the record codec.

Usage:
    from table_backup.errors import BackupError, SchemaError

    try:
        columns = await inspect_table(client, "public.orders")
    except SchemaError as e:
        print(f"Cannot read {e.table}: {e}")
"""


class BackupError(Exception):
    """Base class for all backup/restore errors."""


class SchemaError(BackupError):
    """Column metadata for a table is unavailable (missing or inaccessible)."""

    def __init__(self, table: str, message: str) -> None:
        super().__init__(message)
        self.table = table


class CyclicDependencyError(BackupError):
    """The dependency graph contains a cycle, so no processing order exists."""

    def __init__(self, remaining: list) -> None:
        names = ", ".join(str(n) for n in remaining)
        super().__init__(f"Circular dependencies between: {names}")
        self.remaining = remaining


class ArtifactFormatError(BackupError):
    """The backup document is malformed or unreadable."""


class QueryError(BackupError):
    """A read or delete statement failed against the database."""


class BlobReadError(BackupError):
    """A referenced blob file is missing, unreadable, or not a valid name."""


class FieldDecodeError(BackupError):
    """A field's text cannot be converted to the value its type tag promises."""

    def __init__(self, field: str, type_tag: str | None, message: str) -> None:
        super().__init__(f"Field '{field}' ({type_tag or 'untyped'}): {message}")
        self.field = field
        self.type_tag = type_tag


class RowWriteError(BackupError):
    """A single-row insert failed (constraint violation or other error)."""
