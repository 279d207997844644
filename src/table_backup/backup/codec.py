"""Record codec: database values to tagged text fields and back.

Encoding turns one column value into a ``FieldValue`` carrying the source
column's native type as its type tag.  Decoding turns a ``FieldValue`` back
into a Python value, parsing by the *source* kind from the tag; the insert
statement then casts it to the destination column type, so cross-type
restores follow the database's own conversion rules.

Every native type maps to a ``TypeKind`` and every kind has one explicit
rule here -- no type lookup by name at runtime.

Usage:
    from table_backup.backup.codec import RecordCodec, missing_field_default, OMIT

    codec = RecordCodec(blob_store)
    field = codec.encode("id", 42, "int4")        # FieldValue(value="42", type="int4")
    value = codec.decode(field, columns["id"])    # 42
"""

import base64
import binascii
import json
import logging
from collections.abc import Callable
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from table_backup.backup.blobs import BlobStore
from table_backup.backup.models import FieldValue
from table_backup.errors import BlobReadError, FieldDecodeError
from table_backup.schema.models import ColumnInfo
from table_backup.schema.types import TypeKind, element_type, kind_of

logger = logging.getLogger(__name__)


class _Omit:
    """Sentinel: leave the column out of the insert statement."""

    def __repr__(self) -> str:
        return "OMIT"


OMIT = _Omit()

_TRUE = {"true", "t", "1", "yes", "y", "on"}
_FALSE = {"false", "f", "0", "no", "n", "off"}


# ============================================================================
# Text forms
# ============================================================================


def format_value(value: Any, kind: TypeKind) -> str:
    """Canonical, locale-independent text for a non-null, non-binary value."""
    if kind is TypeKind.BOOLEAN and isinstance(value, bool):
        return "true" if value else "false"
    if kind is TypeKind.FLOAT and isinstance(value, float):
        return repr(value)
    if kind is TypeKind.JSON:
        # A loaded JSON string scalar is still a document: "hello" -> "\"hello\""
        return json.dumps(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def _format_element(value: Any, kind: TypeKind) -> Any:
    if value is None:
        return None
    if isinstance(value, list):
        return [_format_element(item, kind) for item in value]
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return format_value(value, kind)


def format_array(value: Any, element_kind: TypeKind) -> str:
    """JSON list of element texts; nested lists for multi-dimensional arrays.

    Example:
        >>> format_array([date(2024, 1, 1), None], TypeKind.DATE)
        '["2024-01-01", null]'
    """
    if not isinstance(value, list):
        return str(value)
    return json.dumps(_format_element(value, element_kind))


def _parse_boolean(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"not a boolean: {text!r}")


def _parse_json(text: str) -> str:
    json.loads(text)
    return text


def _parse_element(item: Any, kind: TypeKind) -> Any:
    if item is None:
        return None
    if isinstance(item, list):
        return [_parse_element(i, kind) for i in item]
    if not isinstance(item, str):
        raise ValueError(f"array element is not text: {item!r}")
    if kind is TypeKind.BINARY:
        return base64.b64decode(item, validate=True)
    return parse_value(item, kind)


def parse_array(text: str, element_kind: TypeKind) -> list:
    """Parse ``format_array`` output back into a (nested) list of values."""
    items = json.loads(text)
    if not isinstance(items, list):
        raise ValueError(f"not an array: {text!r}")
    return _parse_element(items, element_kind)


_PARSERS: dict[TypeKind, Callable[[str], Any]] = {
    TypeKind.TEXT: str,
    TypeKind.INTEGER: lambda text: int(text.strip()),
    TypeKind.DECIMAL: lambda text: Decimal(text.strip()),
    TypeKind.FLOAT: lambda text: float(text.strip()),
    TypeKind.BOOLEAN: _parse_boolean,
    TypeKind.DATE: lambda text: date.fromisoformat(text.strip()),
    TypeKind.TIME: lambda text: time.fromisoformat(text.strip()),
    TypeKind.DATETIME: lambda text: datetime.fromisoformat(text.strip()),
    TypeKind.UUID: lambda text: UUID(text.strip()),
    TypeKind.JSON: _parse_json,
    TypeKind.ARRAY: lambda text: parse_array(text, TypeKind.OTHER),
    TypeKind.OTHER: str,
}


def parse_value(text: str, kind: TypeKind) -> Any:
    """Parse canonical text back into a Python value of ``kind``.

    Raises:
        ValueError: If ``text`` is not valid for ``kind``.
    """
    try:
        return _PARSERS[kind](text)
    except InvalidOperation as e:
        raise ValueError(f"not a decimal: {text!r}") from e


# ============================================================================
# Missing-field default policy
# ============================================================================


MISSING_FIELD_DEFAULTS: dict[TypeKind, Callable[[], Any]] = {
    TypeKind.BOOLEAN: lambda: False,
    TypeKind.DATETIME: datetime.now,
    TypeKind.DATE: date.today,
    TypeKind.TIME: lambda: datetime.now().time(),
    TypeKind.UUID: lambda: UUID(int=0),
}


def missing_field_default(column: ColumnInfo) -> Any:
    """Value for a destination column the record has no field for.

    Returns ``OMIT`` for kinds without a rule: the column is left out of
    the insert and the database applies its own default or NULL.

    Example:
        >>> missing_field_default(ColumnInfo(name="active", native_type="bool"))
        False
        >>> missing_field_default(ColumnInfo(name="note", native_type="text"))
        OMIT
    """
    factory = MISSING_FIELD_DEFAULTS.get(column.kind)
    if factory is None:
        return OMIT
    return factory()


# ============================================================================
# Codec
# ============================================================================


class RecordCodec:
    """Encode and decode single field values, externalizing binary payloads.

    Args:
        blob_store: Where binary payloads are written (export) or read
            (import).  ``None`` disables blob export.
        include_blobs: When False, binary values are exported as an empty
            marker and a warning is logged once per table column.
        inline_limit: Non-empty binary values up to this many bytes are
            stored inline as base64 instead of in a blob file.  0 disables
            inlining.

    Attributes:
        blobs_written: Binary values written to blob files.
        blobs_skipped: Binary values replaced by the empty marker.
    """

    def __init__(
        self,
        blob_store: BlobStore | None = None,
        include_blobs: bool = True,
        inline_limit: int = 0,
    ) -> None:
        self.blob_store = blob_store
        self.include_blobs = include_blobs and blob_store is not None
        self.inline_limit = inline_limit
        self.blobs_written = 0
        self.blobs_skipped = 0
        self._warned: set[tuple[str | None, str]] = set()

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    def encode(
        self,
        name: str,
        value: Any,
        native_type: str | None,
        table: str | None = None,
    ) -> FieldValue:
        """Encode one column value into a tagged ``FieldValue``."""
        if value is None:
            return FieldValue(name=name, type=native_type, null=True)

        kind = kind_of(native_type)
        if kind is TypeKind.BINARY or isinstance(value, (bytes, bytearray, memoryview)):
            return self._encode_binary(name, value, native_type, table)

        if kind is TypeKind.ARRAY:
            text = format_array(value, kind_of(element_type(native_type)))
        else:
            text = format_value(value, kind)
        return FieldValue(name=name, type=native_type, value=text)

    def _encode_binary(
        self,
        name: str,
        value: Any,
        native_type: str | None,
        table: str | None,
    ) -> FieldValue:
        data = value if isinstance(value, (bytes, bytearray, memoryview)) else bytes(value)
        if len(data) == 0:
            return FieldValue(name=name, type=native_type, value="")

        if not self.include_blobs:
            self.blobs_skipped += 1
            if (table, name) not in self._warned:
                self._warned.add((table, name))
                logger.warning(
                    "Blob export disabled: %s.%s exported as empty values",
                    table or "?", name,
                )
            return FieldValue(name=name, type=native_type, value="")

        if self.inline_limit and len(data) <= self.inline_limit:
            return FieldValue(
                name=name,
                type=native_type,
                value=base64.b64encode(bytes(data)).decode("ascii"),
            )

        ref = self.blob_store.write(data)
        self.blobs_written += 1
        return FieldValue(name=name, type=native_type, blob=ref)

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    def decode(self, field: FieldValue, column: ColumnInfo | None = None) -> Any:
        """Decode a ``FieldValue`` into a Python value.

        The type tag selects the rule; an untagged field falls back to the
        destination column's type.

        Raises:
            FieldDecodeError: If the text cannot be parsed for its type.
        """
        if field.is_null:
            return None

        type_tag = field.type or (column.native_type if column else None)
        kind = kind_of(type_tag)

        if kind is TypeKind.BINARY:
            return self._decode_binary(field)

        text = field.value if field.value is not None else ""
        try:
            if kind is TypeKind.ARRAY:
                return parse_array(text, kind_of(element_type(type_tag)))
            return parse_value(text, kind)
        except ValueError as e:
            raise FieldDecodeError(field.name, type_tag, str(e)) from e

    def _decode_binary(self, field: FieldValue) -> bytes:
        if field.blob:
            if self.blob_store is None:
                logger.warning("No blob directory for %s; using empty value", field.blob)
                return b""
            try:
                return self.blob_store.read(field.blob)
            except BlobReadError as e:
                logger.warning("%s; field %s restored as empty", e, field.name)
                return b""

        if not field.value:
            return b""
        try:
            return base64.b64decode(field.value, validate=True)
        except binascii.Error as e:
            raise FieldDecodeError(field.name, field.type, f"invalid base64: {e}") from e
