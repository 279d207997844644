"""Export tables to a JSON backup document.

Every participating table is described, then streamed row by row through
the client; each column value is encoded by ``RecordCodec``.  The whole
document is materialized in memory and written once, at the end.

Usage:
    from table_backup.backup.export import export_tables

    async with AsyncPostgresClient(url) as client:
        summary = await export_tables(
            client,
            "backups/shop.json",
            tables=["public.customers", "public.orders"],
        )
    print(summary.path, summary.tables)
"""

import logging
import os
from contextlib import aclosing
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from table_backup.adapters.base import DatabaseClient
from table_backup.backup.blobs import DEFAULT_CHUNK_SIZE, DEFAULT_EXTENSION, BlobStore
from table_backup.backup.codec import RecordCodec
from table_backup.backup.models import BackupDocument, BackupMetadata, Record, TableData
from table_backup.backup.progress import ThrottledReporter
from table_backup.schema.inspector import inspect_table
from table_backup.schema.models import qualify_table_name

logger = logging.getLogger(__name__)


class ExportSummary(BaseModel):
    """Result of ``export_tables()``."""

    path: str
    tables: dict[str, int] = Field(default_factory=dict)   # table -> record count
    blobs_written: int = 0
    blobs_skipped: int = 0

    @property
    def total_records(self) -> int:
        return sum(self.tables.values())


def default_output_path() -> Path:
    """Timestamped artifact path under ``./backups/``."""
    timestamp = datetime.now().strftime("%Y-%m-%d-%H%M%S")
    return Path.cwd() / "backups" / f"backup-{timestamp}.json"


async def export_tables(
    client: DatabaseClient,
    output_path: str | Path | None = None,
    tables: list[str] | None = None,
    include_blobs: bool = True,
    blob_extension: str = DEFAULT_EXTENSION,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    inline_limit: int = 0,
    default_schema: str = "public",
    progress: ThrottledReporter | None = None,
    metadata: dict[str, Any] | None = None,
) -> ExportSummary:
    """Export the full contents of ``tables`` to a JSON artifact.

    Tables are written in the order given; the import side orders them by
    foreign keys.  Blob files are written next to the artifact.

    Any failure while reading a table is fatal: no artifact is written and
    the blob files created by this run are removed.

    Args:
        client: Database client implementing ``DatabaseClient``.
        output_path: Artifact path.  When ``None``, a timestamped path under
            ``./backups/`` is used.
        tables: Tables to export.  When ``None``, every base table of
            ``default_schema``.
        include_blobs: Externalize binary values.  When False, binary
            values are exported as empty markers.
        blob_extension: File extension of blob files.
        chunk_size: Bytes per write when streaming a blob to disk.
        inline_limit: Binary values up to this size are stored inline as
            base64.  0 disables inlining.
        default_schema: Schema listed when ``tables`` is ``None``, and the
            schema of bare names when spotting repeated tables.
        progress: Rate-limited progress sink.  Defaults to one INFO log
            line per second.
        metadata: Extra entries merged into the artifact's ``metadata``.
            Keys the format defines itself (``version``, ``table_counts``,
            ...) are ignored with a warning.

    Returns:
        ``ExportSummary`` with the artifact path and per-table counts.

    Raises:
        SchemaError: If a table's columns cannot be read.
        QueryError: If a table's rows cannot be read.

    Example:
        summary = await export_tables(
            client,
            tables=["customers", "orders"],
            include_blobs=False,
            metadata={"environment": "staging"},
        )
    """
    path = Path(output_path) if output_path is not None else default_output_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    progress = progress or ThrottledReporter()

    if tables is None:
        tables = await client.list_tables(default_schema)
        logger.info("Exporting all %d tables of schema %s", len(tables), default_schema)
    tables = _unique_tables(tables, default_schema)

    store = BlobStore(path.parent, extension=blob_extension, chunk_size=chunk_size)
    codec = RecordCodec(store, include_blobs=include_blobs, inline_limit=inline_limit)

    try:
        document = BackupDocument(metadata=_artifact_metadata(metadata, include_blobs))
        for table in tables:
            data = await _export_table(client, codec, table, progress)
            document.tables.append(data)
            document.metadata.table_counts[table] = len(data.records)

        _write_atomic(path, document.to_json())
    except Exception:
        store.discard_written()
        raise

    summary = ExportSummary(
        path=str(path),
        tables=document.summary(),
        blobs_written=codec.blobs_written,
        blobs_skipped=codec.blobs_skipped,
    )
    progress.flush(f"Exported {summary.total_records} records from {len(tables)} tables to {path}")
    return summary


async def _export_table(
    client: DatabaseClient,
    codec: RecordCodec,
    table: str,
    progress: ThrottledReporter,
) -> TableData:
    """Describe and stream one table into a ``TableData``."""
    columns = list((await inspect_table(client, table)).values())
    data = TableData(name=table)

    # Close the cursor as soon as encoding fails
    async with aclosing(client.iter_rows(table)) as rows:
        async for row in rows:
            fields = [
                codec.encode(column.name, value, column.native_type, table)
                for column, value in zip(columns, row)
            ]
            data.records.append(Record(fields=fields))
            progress.report(f"{table}: {len(data.records)} records")

    logger.info("Exported %s: %d records", table, len(data.records))
    return data


def _unique_tables(tables: list[str], default_schema: str) -> list[str]:
    """Drop repeated tables, comparing schema-qualified names.

    ``customers`` and ``public.customers`` are the same table; the first
    spelling is kept.
    """
    seen: set[str] = set()
    unique = []
    for table in tables:
        key = qualify_table_name(table, default_schema)
        if key in seen:
            logger.warning("Table %s listed more than once; exporting it once", table)
            continue
        seen.add(key)
        unique.append(table)
    return unique


def _artifact_metadata(extra: dict[str, Any] | None, include_blobs: bool) -> BackupMetadata:
    """Build artifact metadata; caller keys cannot replace the format's own fields."""
    extra = dict(extra or {})
    reserved = sorted(set(extra) & set(BackupMetadata.model_fields))
    if reserved:
        logger.warning("Ignoring reserved metadata keys: %s", ", ".join(reserved))
        for key in reserved:
            del extra[key]
    return BackupMetadata(include_blobs=include_blobs, **extra)


def _write_atomic(path: Path, text: str) -> None:
    """Write ``text`` to a sibling temp file, then move it over ``path``."""
    tmp = path.with_name(path.name + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)
