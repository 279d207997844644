"""Offline validation of a backup artifact.

``validate_backup`` is **sync** -- it only reads the local JSON file and
checks that referenced blob files exist; no database I/O.

Usage:
    from table_backup.backup.validate import validate_backup

    report = validate_backup("backups/shop.json")
    if not report["valid"]:
        print("\\n".join(report["errors"]))
"""

import json
from pathlib import Path

from pydantic import ValidationError

from table_backup.backup.blobs import BlobStore
from table_backup.backup.models import BackupDocument
from table_backup.backup.restore import SUPPORTED_MAJOR_VERSION
from table_backup.schema.types import TypeKind, kind_of


def validate_backup(backup_path: str | Path) -> dict:
    """Validate backup file format and blob references.

    Errors: unreadable file, invalid JSON, a document that does not match
    the artifact shape, unsupported major version, duplicate table names,
    missing blob files.

    Warnings: missing metadata fields, record counts that disagree with
    ``metadata.table_counts``, unrecognized type tags (restored as text),
    fields carrying no representation at all.

    Args:
        backup_path: Path to backup JSON file.

    Returns:
        Dict with ``valid`` (bool), ``errors`` (list[str]),
        and ``warnings`` (list[str]).

    Example:
        report = validate_backup("backups/backup.json")
        if report["errors"]:
            raise ValueError("Backup is invalid")
    """
    errors: list[str] = []
    warnings: list[str] = []
    path = Path(backup_path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            backup_data = json.load(f)
    except FileNotFoundError:
        errors.append(f"Backup file not found: {path}")
        return {"valid": False, "errors": errors, "warnings": warnings}
    except json.JSONDecodeError as e:
        errors.append(f"Invalid JSON: {e}")
        return {"valid": False, "errors": errors, "warnings": warnings}

    if not isinstance(backup_data, dict):
        errors.append("Backup root must be an object")
        return {"valid": False, "errors": errors, "warnings": warnings}

    for key in ("metadata", "tables"):
        if key not in backup_data:
            errors.append(f"Missing required key: {key}")
    if errors:
        return {"valid": False, "errors": errors, "warnings": warnings}

    metadata = backup_data["metadata"]
    if isinstance(metadata, dict):
        for key in ("created_at", "version"):
            if key not in metadata:
                warnings.append(f"Missing metadata field: {key}")

    try:
        document = BackupDocument.model_validate(backup_data)
    except ValidationError as e:
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"])
            errors.append(f"{location}: {err['msg']}")
        return {"valid": False, "errors": errors, "warnings": warnings}

    version = document.metadata.version
    if version.split(".", 1)[0] != SUPPORTED_MAJOR_VERSION:
        errors.append(
            f"Unsupported backup version '{version}' (expected {SUPPORTED_MAJOR_VERSION}.x)"
        )

    store = BlobStore(path.parent)
    counts = document.metadata.table_counts
    seen_tables: set[str] = set()
    unknown_tags: set[str] = set()

    for table in document.tables:
        if table.name in seen_tables:
            errors.append(f"Duplicate table: {table.name}")
        seen_tables.add(table.name)

        if table.name in counts and counts[table.name] != len(table.records):
            warnings.append(
                f"{table.name}: metadata lists {counts[table.name]} records, "
                f"found {len(table.records)}"
            )

        for index, record in enumerate(table.records):
            for field in record.fields:
                if field.type and kind_of(field.type) is TypeKind.OTHER:
                    unknown_tags.add(field.type)

                if field.blob is not None:
                    if not store.exists(field.blob):
                        errors.append(
                            f"{table.name} record {index}: blob file missing "
                            f"for '{field.name}': {field.blob}"
                        )
                elif not field.is_null and field.value is None:
                    warnings.append(
                        f"{table.name} record {index}: field '{field.name}' has no value"
                    )

    for tag in sorted(unknown_tags):
        warnings.append(f"Unrecognized type tag '{tag}' (restored as text)")

    valid = len(errors) == 0
    return {"valid": valid, "errors": errors, "warnings": warnings}
