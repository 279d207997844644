"""Import a JSON backup document into a database.

Tables are ordered by the live foreign-key graph: optional clobber deletes
run dependents first, inserts run referenced tables first.  Each record is
inserted as its own statement; records that fail to decode or insert are
collected in the report and the run continues.

Usage:
    from table_backup.backup.restore import import_backup

    async with AsyncPostgresClient(url) as client:
        report = await import_backup(
            client,
            "backups/shop.json",
            column_map={"customer_ref": "customer_id"},
            clobber=True,
        )
    if not report.success:
        for failure in report.failures:
            print(failure.table, failure.index, failure.error)
"""

import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from table_backup.adapters.base import DatabaseClient, Parameter
from table_backup.backup.blobs import DEFAULT_CHUNK_SIZE, BlobStore
from table_backup.backup.codec import OMIT, RecordCodec, missing_field_default
from table_backup.backup.models import BackupDocument, Record, TableData
from table_backup.backup.progress import ThrottledReporter
from table_backup.errors import ArtifactFormatError, FieldDecodeError, RowWriteError, SchemaError
from table_backup.schema.dependencies import build_dependency_graph, dependency_order
from table_backup.schema.inspector import inspect_table
from table_backup.schema.models import ColumnInfo

logger = logging.getLogger(__name__)

SUPPORTED_MAJOR_VERSION = "1"


# ============================================================================
# Report Models
# ============================================================================


class RowFailure(BaseModel):
    """One record that could not be imported."""

    table: str
    index: int          # position of the record within its table in the artifact
    error: str
    record: Record | None = None


class TableResult(BaseModel):
    """Per-table counters."""

    table: str
    source: str         # table name in the artifact (before table_map)
    inserted: int = 0
    failed: int = 0
    deleted: int = 0
    skipped: bool = False
    error: str | None = None


class ImportReport(BaseModel):
    """Result of ``import_backup()``."""

    order: list[str] = Field(default_factory=list)      # insert order
    tables: dict[str, TableResult] = Field(default_factory=dict)
    failures: list[RowFailure] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def inserted(self) -> int:
        return sum(t.inserted for t in self.tables.values())

    @property
    def failed(self) -> int:
        return sum(t.failed for t in self.tables.values())

    @property
    def skipped_tables(self) -> list[str]:
        return [name for name, t in self.tables.items() if t.skipped]

    @property
    def success(self) -> bool:
        """True when every record was imported."""
        return not self.failures and not self.skipped_tables


# ============================================================================
# Loading
# ============================================================================


def load_backup(backup_path: str | Path) -> BackupDocument:
    """Load and structurally check a backup artifact.

    Raises:
        ArtifactFormatError: If the file is unreadable, not valid JSON, does
            not match the document shape, has an unsupported major version,
            or lists a table twice.
    """
    path = Path(backup_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ArtifactFormatError(f"Cannot read backup file {path}: {e}") from e

    try:
        document = BackupDocument.model_validate_json(text)
    except ValidationError as e:
        raise ArtifactFormatError(f"Invalid backup file {path}: {e}") from e

    version = document.metadata.version
    if version.split(".", 1)[0] != SUPPORTED_MAJOR_VERSION:
        raise ArtifactFormatError(
            f"Unsupported backup version '{version}' (expected {SUPPORTED_MAJOR_VERSION}.x)"
        )

    seen: set[str] = set()
    for table in document.tables:
        if table.name in seen:
            raise ArtifactFormatError(f"Table {table.name} appears more than once")
        seen.add(table.name)

    return document


# ============================================================================
# Import
# ============================================================================


async def import_backup(
    client: DatabaseClient,
    backup_path: str | Path,
    column_map: dict[str, str] | None = None,
    table_map: dict[str, str] | None = None,
    clobber: bool = False,
    dry_run: bool = False,
    default_schema: str = "public",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress: ThrottledReporter | None = None,
) -> ImportReport:
    """Restore a backup artifact into the database behind ``client``.

    Args:
        client: Database client implementing ``DatabaseClient``.
        backup_path: Path to the JSON artifact.  Blob files are read from
            the same directory.
        column_map: Destination column name -> source field name.  Columns
            not listed are matched by their own name.
        table_map: Artifact table name -> destination table name.  Tables
            not listed keep their name.
        clobber: Delete every row of the destination tables first, in
            dependency order.
        dry_run: Decode every record but delete and insert nothing.
        default_schema: Schema assumed for bare table names when matching
            foreign keys.
        chunk_size: Bytes per read when loading blob files.
        progress: Rate-limited progress sink.  Defaults to one INFO log
            line per second.

    Returns:
        ``ImportReport`` with the insert order, per-table counters and every
        record-level failure.

    Raises:
        ArtifactFormatError: If the artifact is malformed, or two artifact
            tables map to the same destination.
        CyclicDependencyError: If the destination tables' foreign keys form
            a cycle.
        QueryError: If a clobber delete fails.

    Example:
        report = await import_backup(
            client,
            "backups/shop.json",
            table_map={"public.customers": "staging.customers"},
            dry_run=True,
        )
        print(f"{report.inserted} records would be inserted")
    """
    path = Path(backup_path)
    document = load_backup(path)
    column_map = column_map or {}
    table_map = table_map or {}
    progress = progress or ThrottledReporter()

    sources: dict[str, TableData] = {}
    for data in document.tables:
        destination = table_map.get(data.name, data.name)
        if destination in sources:
            raise ArtifactFormatError(
                f"Tables {sources[destination].name} and {data.name} both map to {destination}"
            )
        sources[destination] = data

    tables = list(sources)
    graph = await build_dependency_graph(client, tables, default_schema)
    delete_order = dependency_order(tables, graph)
    insert_order = list(reversed(delete_order))

    report = ImportReport(
        order=insert_order,
        dry_run=dry_run,
        tables={
            table: TableResult(table=table, source=sources[table].name)
            for table in insert_order
        },
    )
    logger.info("Import order: %s", ", ".join(insert_order))

    if clobber:
        for table in delete_order:
            if dry_run:
                logger.info("Dry run: would delete all rows from %s", table)
                continue
            deleted = await client.delete_all(table)
            report.tables[table].deleted = deleted
            logger.info("Deleted %d rows from %s", deleted, table)

    codec = RecordCodec(BlobStore(path.parent, chunk_size=chunk_size))
    for table in insert_order:
        await _import_table(
            client=client,
            codec=codec,
            table=table,
            data=sources[table],
            column_map=column_map,
            dry_run=dry_run,
            report=report,
            progress=progress,
        )

    progress.flush(
        f"{'Dry run: ' if dry_run else ''}{report.inserted} records imported, "
        f"{report.failed} failed"
    )
    return report


async def _import_table(
    client: DatabaseClient,
    codec: RecordCodec,
    table: str,
    data: TableData,
    column_map: dict[str, str],
    dry_run: bool,
    report: ImportReport,
    progress: ThrottledReporter,
) -> None:
    """Insert the records of one table, collecting failures into ``report``.

    Args:
        client: Database client.
        codec: Codec reading blob files from the artifact directory.
        table: Destination table.
        data: Artifact table holding the records.
        column_map: Destination column -> source field.
        dry_run: Whether to skip the actual inserts.
        report: Shared report (mutated in place).
        progress: Rate-limited progress sink.
    """
    result = report.tables[table]

    try:
        columns = await inspect_table(client, table)
    except SchemaError as e:
        logger.error("Skipping %s: %s", table, e)
        result.skipped = True
        result.error = str(e)
        result.failed = len(data.records)
        report.failures.extend(
            RowFailure(table=table, index=index, error=str(e), record=record)
            for index, record in enumerate(data.records)
        )
        return

    for index, record in enumerate(data.records):
        try:
            params = build_parameters(codec, record, columns, column_map)
            if not dry_run:
                await client.insert(table, params)
            result.inserted += 1
        except (FieldDecodeError, RowWriteError) as e:
            result.failed += 1
            report.failures.append(
                RowFailure(table=table, index=index, error=str(e), record=record)
            )
            logger.warning("%s record %d failed: %s", table, index, e)
        progress.report(f"{table}: {index + 1}/{len(data.records)} records")

    logger.info("Imported %s: %d inserted, %d failed", table, result.inserted, result.failed)


def build_parameters(
    codec: RecordCodec,
    record: Record,
    columns: dict[str, ColumnInfo],
    column_map: dict[str, str],
) -> list[Parameter]:
    """Build insert parameters for every destination column of one record.

    Each destination column takes the field named by ``column_map`` (or its
    own name).  Columns with no field get the missing-field default, or are
    left out when the default is ``OMIT``.  Record fields matching no
    destination column are ignored.

    Raises:
        FieldDecodeError: If a field cannot be decoded.
    """
    params: list[Parameter] = []
    for column in columns.values():
        field = record.get(column_map.get(column.name, column.name))
        if field is None:
            value = missing_field_default(column)
            if value is OMIT:
                continue
        else:
            value = codec.decode(field, column)

        params.append(
            Parameter(
                column=column.name,
                value=value,
                native_type=column.native_type,
                size=column.size,
            )
        )
    return params
