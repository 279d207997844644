"""Backup export, import, and validation.

Usage:
    from table_backup.backup import export_tables, import_backup, validate_backup
    from table_backup.backup import BackupDocument, RecordCodec, BlobStore
"""

from table_backup.backup.blobs import BlobStore
from table_backup.backup.codec import OMIT, RecordCodec, missing_field_default
from table_backup.backup.export import ExportSummary, export_tables
from table_backup.backup.models import (
    BackupDocument,
    BackupMetadata,
    FieldValue,
    Record,
    TableData,
)
from table_backup.backup.progress import ThrottledReporter
from table_backup.backup.restore import (
    ImportReport,
    RowFailure,
    TableResult,
    import_backup,
    load_backup,
)
from table_backup.backup.validate import validate_backup

__all__ = [
    "BlobStore",
    "RecordCodec",
    "OMIT",
    "missing_field_default",
    "ThrottledReporter",
    "export_tables",
    "ExportSummary",
    "import_backup",
    "load_backup",
    "ImportReport",
    "RowFailure",
    "TableResult",
    "validate_backup",
    "BackupDocument",
    "BackupMetadata",
    "TableData",
    "Record",
    "FieldValue",
]
