"""Range checks for values written to BigQuery.

Values outside BigQuery's supported ranges are rejected rather than clamped.
Each validator returns its argument unchanged when it is valid.
"""

from __future__ import annotations

from datetime import timezone
from typing import Any

from bqsink.types import ArrayCell, Cell, CellKind, ErrorKind, EtlError, PgNumeric

# The 77th digit of BIGNUMERIC is only partial, so 76 is the practical limit.
BIGQUERY_BIGNUMERIC_MAX_PRACTICAL_DIGITS = 76
BIGQUERY_BIGNUMERIC_MAX_SCALE = 38

_MIN_DATE = (1, 1, 1)
_MAX_DATE = (9999, 12, 31)
_MIN_TIME = (0, 0, 0, 0)
_MAX_TIME = (23, 59, 59, 999999)
_MIN_DATETIME = _MIN_DATE + _MIN_TIME
_MAX_DATETIME = _MAX_DATE + _MAX_TIME

_MIN_DATE_TEXT = "0001-01-01"
_MAX_DATE_TEXT = "9999-12-31"
_MIN_TIME_TEXT = "00:00:00"
_MAX_TIME_TEXT = "23:59:59.999999"
_MIN_DATETIME_TEXT = f"{_MIN_DATE_TEXT} {_MIN_TIME_TEXT}"
_MAX_DATETIME_TEXT = f"{_MAX_DATE_TEXT} {_MAX_TIME_TEXT}"
_MIN_TIMESTAMP_TEXT = f"{_MIN_DATETIME_TEXT}+00:00"
_MAX_TIMESTAMP_TEXT = f"{_MAX_DATETIME_TEXT}+00:00"


def _date_key(value: Any) -> tuple[int, ...]:
    return (value.year, value.month, value.day)


def _time_key(value: Any) -> tuple[int, ...]:
    return (value.hour, value.minute, value.second, value.microsecond)


def _datetime_key(value: Any) -> tuple[int, ...]:
    return _date_key(value) + _time_key(value)


def _format_date(value: Any) -> str:
    sign = "-" if value.year < 0 else ""
    return f"{sign}{abs(value.year):04d}-{value.month:02d}-{value.day:02d}"


def _format_time(value: Any) -> str:
    micros = value.microsecond
    if not micros:
        fraction = ""
    elif micros % 1000 == 0:
        fraction = f".{micros // 1000:03d}"
    else:
        fraction = f".{micros:06d}"
    return f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}{fraction}"


def _format_datetime(value: Any) -> str:
    return f"{_format_date(value)} {_format_time(value)}"


def _format_offset(value: Any) -> str:
    tzinfo = getattr(value, "tzinfo", None)
    offset = value.utcoffset() if tzinfo is not None else None
    minutes = int(offset.total_seconds() // 60) if offset else 0
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}:{mins:02d}"


def _unsupported(description: str, detail: str) -> EtlError:
    return EtlError(ErrorKind.UNSUPPORTED_VALUE_IN_DESTINATION, description, detail)


def _is_numeric_within_bignumeric_limits(numeric: PgNumeric) -> bool:
    text = str(numeric)
    if sum(ch.isdigit() for ch in text) > BIGQUERY_BIGNUMERIC_MAX_PRACTICAL_DIGITS:
        return False
    _, dot, decimals = text.partition(".")
    if dot and sum(ch.isdigit() for ch in decimals) > BIGQUERY_BIGNUMERIC_MAX_SCALE:
        return False
    return True


def validate_numeric_for_bigquery(numeric: PgNumeric) -> PgNumeric:
    """Check that a numeric fits BigQuery's BIGNUMERIC type."""
    if numeric.is_nan:
        raise _unsupported(
            "BigQuery NUMERIC/BIGNUMERIC does not support NaN values",
            "The numeric value NaN cannot be stored in BigQuery. "
            "Please provide a finite numeric value",
        )
    if numeric.is_infinite:
        sign = "-" if str(numeric).startswith("-") else "+"
        raise _unsupported(
            "BigQuery NUMERIC/BIGNUMERIC does not support infinity values",
            f"The numeric value {sign}Infinity cannot be stored in BigQuery. "
            "Please provide a finite numeric value",
        )
    if not _is_numeric_within_bignumeric_limits(numeric):
        raise _unsupported(
            "Numeric value exceeds BigQuery BIGNUMERIC limits",
            f"The numeric value '{numeric}' exceeds BigQuery's BIGNUMERIC limits "
            f"(max ~{BIGQUERY_BIGNUMERIC_MAX_PRACTICAL_DIGITS} digits, "
            f"{BIGQUERY_BIGNUMERIC_MAX_SCALE} decimal places)",
        )
    return numeric


def validate_date_for_bigquery(date: Any) -> Any:
    """Check that a date lies between 0001-01-01 and 9999-12-31."""
    key = _date_key(date)
    supported = "BigQuery DATE supports values from 0001-01-01 to 9999-12-31"
    if key < _MIN_DATE:
        raise _unsupported(
            "Date value is before BigQuery's minimum supported date",
            f"The date '{_format_date(date)}' is before BigQuery's minimum supported "
            f"date '{_MIN_DATE_TEXT}'. {supported}",
        )
    if key > _MAX_DATE:
        raise _unsupported(
            "Date value is after BigQuery's maximum supported date",
            f"The date '{_format_date(date)}' is after BigQuery's maximum supported "
            f"date '{_MAX_DATE_TEXT}'. {supported}",
        )
    return date


def validate_time_for_bigquery(time: Any) -> Any:
    """Check that a time lies between 00:00:00 and 23:59:59.999999."""
    key = _time_key(time)
    supported = "BigQuery TIME supports values from 00:00:00 to 23:59:59.999999"
    if key < _MIN_TIME:
        raise _unsupported(
            "Time value is before BigQuery's minimum supported time",
            f"The time '{_format_time(time)}' is before BigQuery's minimum supported "
            f"time '{_MIN_TIME_TEXT}'. {supported}",
        )
    if key > _MAX_TIME:
        raise _unsupported(
            "Time value is after BigQuery's maximum supported time",
            f"The time '{_format_time(time)}' is after BigQuery's maximum supported "
            f"time '{_MAX_TIME_TEXT}'. {supported}",
        )
    return time


def validate_datetime_for_bigquery(value: Any) -> Any:
    """Check that a naive datetime lies within BigQuery's DATETIME range."""
    key = _datetime_key(value)
    supported = (
        "BigQuery DATETIME supports values from 0001-01-01 00:00:00 "
        "to 9999-12-31 23:59:59.999999"
    )
    if key < _MIN_DATETIME:
        raise _unsupported(
            "DateTime value is before BigQuery's minimum supported datetime",
            f"The datetime '{_format_datetime(value)}' is before BigQuery's minimum "
            f"supported datetime '{_MIN_DATETIME_TEXT}'. {supported}",
        )
    if key > _MAX_DATETIME:
        raise _unsupported(
            "DateTime value is after BigQuery's maximum supported datetime",
            f"The datetime '{_format_datetime(value)}' is after BigQuery's maximum "
            f"supported datetime '{_MAX_DATETIME_TEXT}'. {supported}",
        )
    return value


def validate_timestamptz_for_bigquery(value: Any) -> Any:
    """Check that a timestamp, taken in UTC, lies within BigQuery's TIMESTAMP range."""
    supported = (
        "BigQuery TIMESTAMP supports values from 0001-01-01 00:00:00 UTC "
        "to 9999-12-31 23:59:59.999999 UTC"
    )
    tzinfo = getattr(value, "tzinfo", None)
    offset = value.utcoffset() if tzinfo is not None else None
    utc_value = value
    key: tuple[int, ...] | None
    if offset:
        try:
            utc_value = value.astimezone(timezone.utc)
            key = _datetime_key(utc_value)
        except OverflowError:
            key = None
    else:
        key = _datetime_key(value)

    if key is None:
        text = f"{_format_datetime(value)}{_format_offset(value)}"
        before = offset.total_seconds() > 0
    else:
        text = f"{_format_datetime(utc_value)}+00:00"
        before = key < _MIN_DATETIME
        if not before and key <= _MAX_DATETIME:
            return value

    if before:
        raise _unsupported(
            "Timestamp value is before BigQuery's minimum supported timestamp",
            f"The timestamp '{text}' is before BigQuery's minimum supported "
            f"timestamp '{_MIN_TIMESTAMP_TEXT}'. {supported}",
        )
    raise _unsupported(
        "Timestamp value is after BigQuery's maximum supported timestamp",
        f"The timestamp '{text}' is after BigQuery's maximum supported "
        f"timestamp '{_MAX_TIMESTAMP_TEXT}'. {supported}",
    )


_ELEMENT_VALIDATORS = {
    CellKind.NUMERIC: validate_numeric_for_bigquery,
    CellKind.DATE: validate_date_for_bigquery,
    CellKind.TIME: validate_time_for_bigquery,
    CellKind.TIMESTAMP: validate_datetime_for_bigquery,
    CellKind.TIMESTAMPTZ: validate_timestamptz_for_bigquery,
}


def validate_array_cell_for_bigquery(array_cell: ArrayCell) -> ArrayCell:
    """Check every element of an array against BigQuery's range for its kind."""
    validator = _ELEMENT_VALIDATORS.get(array_cell.kind)
    if validator is None:
        return array_cell
    for index, element in enumerate(array_cell.values):
        if element is None:
            continue
        try:
            validator(element)
        except EtlError as err:
            raise EtlError(
                err.kind,
                "Array element validation failed",
                f"Element at index {index}: {err}",
            ) from err
    return array_cell


def validate_cell_for_bigquery(cell: Cell) -> Cell:
    """Check a cell's value against BigQuery's supported range for its kind."""
    if cell.kind is CellKind.ARRAY:
        validate_array_cell_for_bigquery(cell.value)
        return cell
    validator = _ELEMENT_VALIDATORS.get(cell.kind)
    if validator is not None and cell.value is not None:
        validator(cell.value)
    return cell