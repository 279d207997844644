"""Backup document models.

The artifact is a JSON document: ``metadata`` plus an ordered list of
tables, each holding ordered records of named, typed, nullable fields.
Binary fields reference a sibling blob file by name.

Unknown keys are ignored when loading, so older readers accept newer
artifacts and vice versa.

Usage:
    from table_backup.backup.models import BackupDocument, TableData, Record, FieldValue

    doc = BackupDocument(tables=[
        TableData(name="public.customers", records=[
            Record(fields=[
                FieldValue(name="id", type="int4", value="1"),
                FieldValue(name="nickname", type="text", null=True),
            ]),
        ]),
    ])
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

FORMAT_VERSION = "1.0"


class FieldValue(BaseModel):
    """A single field of a record.

    Exactly one representation is used: ``value`` (text, or inline base64
    for binary), ``null=True``, or ``blob`` (externalized file name).
    """

    model_config = ConfigDict(extra="ignore")

    name: str
    type: str | None = None     # source column's native type (type tag)
    value: str | None = None
    null: bool | None = None
    blob: str | None = None

    @property
    def is_null(self) -> bool:
        """True when the field carries the null marker."""
        return bool(self.null)


class Record(BaseModel):
    """An ordered sequence of fields, addressed by name."""

    model_config = ConfigDict(extra="ignore")

    fields: list[FieldValue] = Field(default_factory=list)
    _by_name: dict[str, FieldValue] | None = PrivateAttr(default=None)

    def get(self, name: str) -> FieldValue | None:
        """Return the field called ``name``, or ``None`` when absent."""
        if self._by_name is None:
            self._by_name = {}
            for field in self.fields:
                self._by_name.setdefault(field.name, field)
        return self._by_name.get(name)

    def field_names(self) -> list[str]:
        """Field names in artifact order."""
        return [f.name for f in self.fields]


class TableData(BaseModel):
    """A table and its records, in export order."""

    model_config = ConfigDict(extra="ignore")

    name: str
    records: list[Record] = Field(default_factory=list)


class BackupMetadata(BaseModel):
    """Artifact metadata.  Extra caller-provided keys are preserved."""

    model_config = ConfigDict(extra="allow")

    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    version: str = FORMAT_VERSION
    include_blobs: bool = True
    table_counts: dict[str, int] = Field(default_factory=dict)


class BackupDocument(BaseModel):
    """The whole artifact: metadata and ordered tables."""

    model_config = ConfigDict(extra="ignore")

    metadata: BackupMetadata = Field(default_factory=BackupMetadata)
    tables: list[TableData] = Field(default_factory=list)

    def to_json(self) -> str:
        """Serialize with two-space indentation, omitting unset representations."""
        return self.model_dump_json(indent=2, exclude_none=True)

    def summary(self) -> dict[str, Any]:
        """Per-table record counts, in document order."""
        return {t.name: len(t.records) for t in self.tables}
