"""table-backup: Portable backup and restore of relational table contents.

Exports the full contents of database tables to a self-describing JSON
artifact (binary values externalized to sibling blob files) and restores
it in foreign-key order, tolerating per-record failures.

Usage:
    from table_backup import AsyncPostgresClient, export_tables, import_backup
    from table_backup import validate_backup, load_db_config, get_client
"""

__version__ = "0.1.0"

# Adapters
from table_backup.adapters.base import DatabaseClient, Parameter
from table_backup.adapters.postgres import AsyncPostgresClient

# Config
from table_backup.config.loader import load_db_config
from table_backup.config.models import BackupSettings, DatabaseConfig, DatabaseProfile

# Factory
from table_backup.factory import ProfileNotFoundError, get_client, resolve_url

# Errors
from table_backup.errors import (
    ArtifactFormatError,
    BackupError,
    BlobReadError,
    CyclicDependencyError,
    FieldDecodeError,
    QueryError,
    RowWriteError,
    SchemaError,
)

# Backup / restore
from table_backup.backup.export import ExportSummary, export_tables
from table_backup.backup.models import BackupDocument, FieldValue, Record, TableData
from table_backup.backup.restore import ImportReport, import_backup, load_backup
from table_backup.backup.validate import validate_backup

# Schema
from table_backup.schema.toposort import topological_sort

__all__ = [
    # Adapters
    "DatabaseClient",
    "Parameter",
    "AsyncPostgresClient",
    # Config
    "load_db_config",
    "BackupSettings",
    "DatabaseProfile",
    "DatabaseConfig",
    # Factory
    "get_client",
    "ProfileNotFoundError",
    "resolve_url",
    # Errors
    "BackupError",
    "SchemaError",
    "CyclicDependencyError",
    "ArtifactFormatError",
    "QueryError",
    "BlobReadError",
    "FieldDecodeError",
    "RowWriteError",
    # Backup / restore
    "export_tables",
    "ExportSummary",
    "import_backup",
    "ImportReport",
    "load_backup",
    "validate_backup",
    "BackupDocument",
    "TableData",
    "Record",
    "FieldValue",
    # Schema
    "topological_sort",
]
