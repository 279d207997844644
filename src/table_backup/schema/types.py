"""Native type kinds.

Every native column type the codec knows about maps to one member of the
closed ``TypeKind`` enumeration.  Native type names are PostgreSQL
``pg_type.typname`` values (``int4``, ``varchar``, ``bytea``) plus the
verbose ``information_schema`` spellings; anything unlisted is
``TypeKind.OTHER`` and travels as text.  Array types (``text[]``) are
``TypeKind.ARRAY`` whatever their element type.

Usage:
    from table_backup.schema.types import TypeKind, kind_of

    kind_of("int4")         # TypeKind.INTEGER
    kind_of("timestamptz")  # TypeKind.DATETIME
    kind_of("inet")         # TypeKind.OTHER
    kind_of("text[]")       # TypeKind.ARRAY
"""

from enum import Enum


class TypeKind(str, Enum):
    """Closed set of value kinds, each with its own codec rule."""

    TEXT = "text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    UUID = "uuid"
    BINARY = "binary"
    JSON = "json"
    ARRAY = "array"
    OTHER = "other"


NATIVE_TYPE_KINDS: dict[str, TypeKind] = {
    # text
    "text": TypeKind.TEXT,
    "varchar": TypeKind.TEXT,
    "character varying": TypeKind.TEXT,
    "bpchar": TypeKind.TEXT,
    "char": TypeKind.TEXT,
    "character": TypeKind.TEXT,
    "name": TypeKind.TEXT,
    "citext": TypeKind.TEXT,
    # integer
    "int2": TypeKind.INTEGER,
    "int4": TypeKind.INTEGER,
    "int8": TypeKind.INTEGER,
    "int": TypeKind.INTEGER,
    "smallint": TypeKind.INTEGER,
    "integer": TypeKind.INTEGER,
    "bigint": TypeKind.INTEGER,
    "oid": TypeKind.INTEGER,
    # exact / approximate numerics
    "numeric": TypeKind.DECIMAL,
    "decimal": TypeKind.DECIMAL,
    "float4": TypeKind.FLOAT,
    "float8": TypeKind.FLOAT,
    "real": TypeKind.FLOAT,
    "double precision": TypeKind.FLOAT,
    # boolean
    "bool": TypeKind.BOOLEAN,
    "boolean": TypeKind.BOOLEAN,
    # date/time
    "date": TypeKind.DATE,
    "time": TypeKind.TIME,
    "timetz": TypeKind.TIME,
    "time without time zone": TypeKind.TIME,
    "time with time zone": TypeKind.TIME,
    "timestamp": TypeKind.DATETIME,
    "timestamptz": TypeKind.DATETIME,
    "timestamp without time zone": TypeKind.DATETIME,
    "timestamp with time zone": TypeKind.DATETIME,
    # identifiers, binary, documents
    "uuid": TypeKind.UUID,
    "bytea": TypeKind.BINARY,
    "json": TypeKind.JSON,
    "jsonb": TypeKind.JSON,
    "array": TypeKind.ARRAY,
}


ARRAY_SUFFIX = "[]"


def kind_of(native_type: str | None) -> TypeKind:
    """Map a native type name (case-insensitive) to its ``TypeKind``."""
    if not native_type:
        return TypeKind.OTHER
    if native_type.endswith(ARRAY_SUFFIX):
        return TypeKind.ARRAY
    return NATIVE_TYPE_KINDS.get(native_type.lower(), TypeKind.OTHER)


def element_type(native_type: str | None) -> str | None:
    """Element type of an array type name (``int4[]`` -> ``int4``).

    Returns ``None`` for non-array names and for the bare ``ARRAY``
    spelling, whose elements then travel as text.
    """
    if native_type and native_type.endswith(ARRAY_SUFFIX):
        return native_type[: -len(ARRAY_SUFFIX)]
    return None
