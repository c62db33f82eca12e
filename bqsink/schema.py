"""BigQuery DDL fragments and storage descriptors derived from Postgres column schemas."""

from __future__ import annotations

import enum
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass, field

from bqsink.types import (
    Cell,
    CellKind,
    ColumnSchema,
    ErrorKind,
    EtlError,
    PgType,
    is_array_type,
)

BIGQUERY_CDC_SPECIAL_COLUMN = "_CHANGE_TYPE"
BIGQUERY_CDC_SEQUENCE_COLUMN = "_CHANGE_SEQUENCE_NUMBER"


class OperationType(enum.Enum):
    """Change data capture operation recorded in the special change-type column."""

    UPSERT = "UPSERT"
    DELETE = "DELETE"

    def __str__(self) -> str:
        return self.value

    def to_cell(self) -> Cell:
        """Return the operation as a string cell ready to append to a row."""
        return Cell(CellKind.STRING, self.value)


class ColumnType(enum.Enum):
    """Wire type of a field in the storage write descriptor."""

    BOOL = "bool"
    BYTES = "bytes"
    DOUBLE = "double"
    FLOAT = "float"
    INT32 = "int32"
    INT64 = "int64"
    STRING = "string"


class ColumnMode(enum.Enum):
    """Cardinality of a field in the storage write descriptor."""

    NULLABLE = "nullable"
    REQUIRED = "required"
    REPEATED = "repeated"


@dataclass(frozen=True)
class FieldDescriptor:
    """One field of a table descriptor, numbered from 1."""

    number: int
    name: str
    typ: ColumnType
    mode: ColumnMode


@dataclass(frozen=True)
class TableDescriptor:
    """The ordered fields used to encode rows for the storage write API."""

    field_descriptors: tuple[FieldDescriptor, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "field_descriptors", tuple(self.field_descriptors))


_SQL_TYPES: dict[PgType, str] = {
    PgType.BOOL: "bool",
    PgType.CHAR: "string",
    PgType.BPCHAR: "string",
    PgType.VARCHAR: "string",
    PgType.NAME: "string",
    PgType.TEXT: "string",
    PgType.INT2: "int64",
    PgType.INT4: "int64",
    PgType.INT8: "int64",
    PgType.FLOAT4: "float64",
    PgType.FLOAT8: "float64",
    PgType.NUMERIC: "bignumeric",
    PgType.DATE: "date",
    PgType.TIME: "time",
    PgType.TIMESTAMP: "timestamp",
    PgType.TIMESTAMPTZ: "timestamp",
    PgType.UUID: "string",
    PgType.JSON: "json",
    PgType.JSONB: "json",
    PgType.OID: "int64",
    PgType.BYTEA: "bytes",
}

_STORAGE_TYPES: dict[PgType, ColumnType] = {
    PgType.BOOL: ColumnType.BOOL,
    PgType.INT2: ColumnType.INT32,
    PgType.INT4: ColumnType.INT32,
    PgType.INT8: ColumnType.INT64,
    PgType.FLOAT4: ColumnType.FLOAT,
    PgType.FLOAT8: ColumnType.DOUBLE,
    PgType.OID: ColumnType.INT32,
    PgType.BYTEA: ColumnType.BYTES,
}


def _element_type(typ: PgType) -> PgType:
    """Return the element type of an array type, or the type itself."""
    if is_array_type(typ):
        return PgType(typ.value[1:])
    return typ


def sanitize_identifier(identifier: str, context: str) -> str:
    """Escape an identifier for safe use inside backticks.

    Empty identifiers and identifiers holding control characters are rejected.
    Backticks and backslashes are escaped with a backslash.
    """
    if not identifier:
        raise EtlError(
            ErrorKind.DESTINATION_TABLE_NAME_INVALID,
            "Invalid BigQuery identifier",
            f"{context} cannot be empty",
        )
    if any(unicodedata.category(ch) == "Cc" for ch in identifier):
        raise EtlError(
            ErrorKind.DESTINATION_TABLE_NAME_INVALID,
            "Invalid BigQuery identifier",
            f"{context} contains control characters",
        )
    return identifier.replace("\\", "\\\\").replace("`", "\\`")


def postgres_to_bigquery_type(typ: PgType) -> str:
    """Return the BigQuery SQL type used for a Postgres column type."""
    sql_type = _SQL_TYPES.get(_element_type(typ), "string")
    if is_array_type(typ):
        return f"array<{sql_type}>"
    return sql_type


def column_spec(column_schema: ColumnSchema) -> str:
    """Return the column definition used in a CREATE TABLE statement."""
    name = sanitize_identifier(column_schema.name, "BigQuery column name")
    spec = f"`{name}` {postgres_to_bigquery_type(column_schema.typ)}"
    if not column_schema.nullable and not is_array_type(column_schema.typ):
        spec += " not null"
    return spec


def add_primary_key_clause(column_schemas: Iterable[ColumnSchema]) -> str:
    """Return the unenforced primary key clause, or an empty string without keys."""
    keys = [
        f"`{sanitize_identifier(schema.name, 'BigQuery primary key column')}`"
        for schema in column_schemas
        if schema.primary
    ]
    if not keys:
        return ""
    return f", primary key ({','.join(keys)}) not enforced"


def create_columns_spec(column_schemas: Iterable[ColumnSchema]) -> str:
    """Return the parenthesised column list, primary key clause included."""
    schemas = list(column_schemas)
    columns = ",".join(column_spec(schema) for schema in schemas)
    return f"({columns}{add_primary_key_clause(schemas)})"


def max_staleness_option(max_staleness_mins: int) -> str:
    """Return the table option setting the maximum staleness in minutes."""
    return f"options (max_staleness = interval {max_staleness_mins} minute)"


def column_schemas_to_table_descriptor(
    column_schemas: Iterable[ColumnSchema], use_cdc_sequence_column: bool
) -> TableDescriptor:
    """Build the storage write descriptor, appending the change data capture columns."""
    descriptors = []
    for schema in column_schemas:
        typ = _STORAGE_TYPES.get(_element_type(schema.typ), ColumnType.STRING)
        if is_array_type(schema.typ):
            mode = ColumnMode.REPEATED
        elif schema.nullable:
            mode = ColumnMode.NULLABLE
        else:
            mode = ColumnMode.REQUIRED
        descriptors.append(FieldDescriptor(len(descriptors) + 1, schema.name, typ, mode))

    cdc_columns = [BIGQUERY_CDC_SPECIAL_COLUMN]
    if use_cdc_sequence_column:
        cdc_columns.append(BIGQUERY_CDC_SEQUENCE_COLUMN)
    for name in cdc_columns:
        descriptors.append(
            FieldDescriptor(len(descriptors) + 1, name, ColumnType.STRING, ColumnMode.REQUIRED)
        )

    return TableDescriptor(tuple(descriptors))