"""Core value types shared by the BigQuery sink: errors, Postgres types and row cells."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar


class ErrorKind(enum.Enum):
    """Classification of errors raised by the sink."""

    AUTHENTICATION_ERROR = "authentication_error"
    DESTINATION_IO_ERROR = "destination_io_error"
    DESTINATION_QUERY_FAILED = "destination_query_failed"
    DESTINATION_ERROR = "destination_error"
    DESTINATION_TABLE_NAME_INVALID = "destination_table_name_invalid"
    UNSUPPORTED_VALUE_IN_DESTINATION = "unsupported_value_in_destination"
    NULL_VALUES_NOT_SUPPORTED_IN_ARRAY_IN_DESTINATION = (
        "null_values_not_supported_in_array_in_destination"
    )
    MISSING_TABLE_SCHEMA = "missing_table_schema"
    MISSING_TABLE_MAPPING = "missing_table_mapping"
    INVALID_STATE = "invalid_state"
    INVALID_DATA = "invalid_data"
    CONVERSION_ERROR = "conversion_error"
    SERIALIZATION_ERROR = "serialization_error"
    PERMISSION_DENIED = "permission_denied"


class EtlError(Exception):
    """An error with a kind, a short description and an optional detail."""

    def __init__(self, kind: ErrorKind, description: str, detail: str | None = None):
        super().__init__(description, detail)
        self.kind = kind
        self.description = description
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.description}: {self.detail}"
        return self.description


class PgType(enum.Enum):
    """Postgres column types known to the sink; array types carry a leading underscore."""

    BOOL = "bool"
    CHAR = "char"
    BPCHAR = "bpchar"
    VARCHAR = "varchar"
    NAME = "name"
    TEXT = "text"
    INT2 = "int2"
    INT4 = "int4"
    INT8 = "int8"
    FLOAT4 = "float4"
    FLOAT8 = "float8"
    NUMERIC = "numeric"
    DATE = "date"
    TIME = "time"
    TIMETZ = "timetz"
    TIMESTAMP = "timestamp"
    TIMESTAMPTZ = "timestamptz"
    INTERVAL = "interval"
    INET = "inet"
    UUID = "uuid"
    JSON = "json"
    JSONB = "jsonb"
    OID = "oid"
    BYTEA = "bytea"
    BOOL_ARRAY = "_bool"
    CHAR_ARRAY = "_char"
    BPCHAR_ARRAY = "_bpchar"
    VARCHAR_ARRAY = "_varchar"
    NAME_ARRAY = "_name"
    TEXT_ARRAY = "_text"
    INT2_ARRAY = "_int2"
    INT4_ARRAY = "_int4"
    INT8_ARRAY = "_int8"
    FLOAT4_ARRAY = "_float4"
    FLOAT8_ARRAY = "_float8"
    NUMERIC_ARRAY = "_numeric"
    DATE_ARRAY = "_date"
    TIME_ARRAY = "_time"
    TIMESTAMP_ARRAY = "_timestamp"
    TIMESTAMPTZ_ARRAY = "_timestamptz"
    INTERVAL_ARRAY = "_interval"
    UUID_ARRAY = "_uuid"
    JSON_ARRAY = "_json"
    JSONB_ARRAY = "_jsonb"
    OID_ARRAY = "_oid"
    BYTEA_ARRAY = "_bytea"


def is_array_type(typ: PgType) -> bool:
    """Return True if the Postgres type is an array type."""
    return typ.value.startswith("_")


@dataclass(frozen=True)
class ColumnSchema:
    """Schema of one source column."""

    name: str
    typ: PgType
    modifier: int = -1
    nullable: bool = True
    primary: bool = False


@dataclass(frozen=True)
class TableName:
    """A schema-qualified Postgres table name."""

    schema: str
    name: str

    def __str__(self) -> str:
        return f"{self.schema}.{self.name}"


@dataclass(frozen=True)
class TableSchema:
    """Schema of a source table: its id, name and columns."""

    id: int
    name: TableName
    column_schemas: tuple[ColumnSchema, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "column_schemas", tuple(self.column_schemas))


@dataclass(frozen=True, eq=False)
class PgNumeric:
    """A Postgres numeric: a finite decimal, NaN, or signed infinity."""

    value: Decimal

    NAN: ClassVar[PgNumeric]
    POSITIVE_INFINITY: ClassVar[PgNumeric]
    NEGATIVE_INFINITY: ClassVar[PgNumeric]

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            object.__setattr__(self, "value", Decimal(self.value))
        if self.value.is_snan():
            object.__setattr__(self, "value", Decimal("NaN"))

    @classmethod
    def parse(cls, text: str) -> PgNumeric:
        """Parse the textual form of a Postgres numeric."""
        stripped = text.strip()
        try:
            value = Decimal(stripped)
        except InvalidOperation:
            raise EtlError(
                ErrorKind.CONVERSION_ERROR,
                "Invalid numeric value",
                f"The value '{text}' is not a valid numeric",
            ) from None
        if value.is_snan():
            raise EtlError(
                ErrorKind.CONVERSION_ERROR,
                "Invalid numeric value",
                f"The value '{text}' is not a valid numeric",
            )
        return cls(value)

    @property
    def is_nan(self) -> bool:
        return self.value.is_nan()

    @property
    def is_infinite(self) -> bool:
        return self.value.is_infinite()

    @property
    def is_finite(self) -> bool:
        return self.value.is_finite()

    def __str__(self) -> str:
        if self.is_nan:
            return "NaN"
        if self.is_infinite:
            return "-Infinity" if self.value.is_signed() else "Infinity"
        return format(self.value, "f")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PgNumeric):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))


PgNumeric.NAN = PgNumeric(Decimal("NaN"))
PgNumeric.POSITIVE_INFINITY = PgNumeric(Decimal("Infinity"))
PgNumeric.NEGATIVE_INFINITY = PgNumeric(Decimal("-Infinity"))


class CellKind(enum.Enum):
    """The kind of value held by a cell, or by the elements of an array cell."""

    NULL = "null"
    BOOL = "bool"
    STRING = "string"
    I16 = "i16"
    I32 = "i32"
    U32 = "u32"
    I64 = "i64"
    F32 = "f32"
    F64 = "f64"
    NUMERIC = "numeric"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    TIMESTAMPTZ = "timestamptz"
    UUID = "uuid"
    JSON = "json"
    BYTES = "bytes"
    ARRAY = "array"


@dataclass(frozen=True)
class ArrayCell:
    """An array value; ``kind`` is the element kind and elements may be None."""

    kind: CellKind
    values: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class Cell:
    """A single column value tagged with its kind."""

    kind: CellKind
    value: Any = None


@dataclass
class TableRow:
    """A row of cells in column order."""

    values: list[Cell] = field(default_factory=list)


def to_non_optional(cell: Cell) -> Cell:
    """Return the cell in a form the destination can store.

    A cell without a value becomes a null cell; an array holding a null
    element is rejected.
    """
    if cell.kind is CellKind.NULL or cell.value is None:
        return Cell(CellKind.NULL)
    if cell.kind is CellKind.ARRAY:
        array: ArrayCell = cell.value
        for index, element in enumerate(array.values):
            if element is None:
                raise EtlError(
                    ErrorKind.NULL_VALUES_NOT_SUPPORTED_IN_ARRAY_IN_DESTINATION,
                    "Null values in arrays are not supported",
                    f"The {array.kind.value} array holds a null element at index {index}, "
                    "which the destination cannot store",
                )
    return cell