"""BigQuery table naming, versioned table ids and row batch splitting."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from bqsink.types import ErrorKind, EtlError, TableName, TableRow

BIGQUERY_TABLE_ID_DELIMITER = "_"
BIGQUERY_TABLE_ID_DELIMITER_ESCAPE_REPLACEMENT = "__"

_U64_MAX = 2**64 - 1


def table_name_to_bigquery_table_id(table_name: TableName) -> str:
    """Return the BigQuery table id for a Postgres table name.

    Underscores in the schema and table names are doubled and a single
    underscore joins them, so ``a_b.c`` and ``a.b_c`` map to different ids.
    """
    schema = table_name.schema.replace(
        BIGQUERY_TABLE_ID_DELIMITER, BIGQUERY_TABLE_ID_DELIMITER_ESCAPE_REPLACEMENT
    )
    table = table_name.name.replace(
        BIGQUERY_TABLE_ID_DELIMITER, BIGQUERY_TABLE_ID_DELIMITER_ESCAPE_REPLACEMENT
    )
    return f"{schema}{BIGQUERY_TABLE_ID_DELIMITER}{table}"


def _parse_u64(text: str) -> int:
    """Parse an unsigned 64-bit integer, with an optional leading plus sign."""
    if not text:
        raise ValueError("cannot parse integer from empty string")
    digits = text[1:] if text.startswith("+") else text
    if not digits or not all("0" <= ch <= "9" for ch in digits):
        raise ValueError("invalid digit found in string")
    value = int(digits)
    if value > _U64_MAX:
        raise ValueError("number too large to fit in target type")
    return value


@dataclass(frozen=True)
class SequencedTableId:
    """A BigQuery table id with a version number, written ``<table_id>_<sequence>``.

    Each truncate moves a table to the next version.
    """

    table_id: str
    sequence: int = 0

    @classmethod
    def parse(cls, text: str) -> SequencedTableId:
        """Parse ``<table_id>_<sequence>``, splitting at the last underscore."""
        table_id, sep, sequence_text = text.rpartition("_")
        if not sep:
            raise EtlError(
                ErrorKind.DESTINATION_TABLE_NAME_INVALID,
                "Invalid sequenced BigQuery table ID format",
                f"No underscore found in table ID '{text}'. Expected format: "
                "'table_name_sequence' where sequence is a non-negative integer",
            )
        if not table_id:
            raise EtlError(
                ErrorKind.DESTINATION_TABLE_NAME_INVALID,
                "Invalid sequenced BigQuery table ID format",
                f"Table name cannot be empty in sequenced table ID '{text}'. "
                "Expected format: 'table_name_sequence'",
            )
        if not sequence_text:
            raise EtlError(
                ErrorKind.DESTINATION_TABLE_NAME_INVALID,
                "Invalid sequenced BigQuery table ID format",
                f"Sequence number cannot be empty in sequenced table ID '{text}'. "
                "Expected format: 'table_name_sequence'",
            )
        try:
            sequence = _parse_u64(sequence_text)
        except ValueError as err:
            raise EtlError(
                ErrorKind.DESTINATION_TABLE_NAME_INVALID,
                "Invalid sequence number in BigQuery table ID",
                f"Failed to parse sequence number '{sequence_text}' in table ID '{text}': "
                f"{err}. Expected a non-negative integer (0-{_U64_MAX})",
            ) from None
        return cls(table_id, sequence)

    def next(self) -> SequencedTableId:
        """Return the id of the next version of the same table."""
        if self.sequence >= _U64_MAX:
            raise OverflowError(f"sequence number of '{self}' cannot be incremented")
        return SequencedTableId(self.table_id, self.sequence + 1)

    def __str__(self) -> str:
        return f"{self.table_id}_{self.sequence}"


def split_table_rows(
    table_rows: Sequence[TableRow], max_concurrent_streams: int
) -> list[list[TableRow]]:
    """Split rows into about equal batches, one per available stream.

    Earlier batches take the extra rows when the split is uneven.
    """
    rows = list(table_rows)
    total = len(rows)
    if total == 0:
        return []
    if total <= 1 or max_concurrent_streams == 1 or total <= max_concurrent_streams:
        return [rows]
    if max_concurrent_streams < 1:
        raise ValueError(
            f"max_concurrent_streams must be positive, got {max_concurrent_streams}"
        )

    rows_per_batch = -(-total // max_concurrent_streams)
    batch_count = -(-total // rows_per_batch)
    base, extra = divmod(total, batch_count)

    batches = []
    start = 0
    for index in range(batch_count):
        end = start + base + (1 if index < extra else 0)
        batches.append(rows[start:end])
        start = end
    return batches