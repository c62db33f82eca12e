from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

import pytest

from bqsink.types import ArrayCell, Cell, CellKind, ErrorKind, EtlError, PgNumeric
from bqsink.validation import (
    validate_array_cell_for_bigquery,
    validate_cell_for_bigquery,
    validate_date_for_bigquery,
    validate_datetime_for_bigquery,
    validate_numeric_for_bigquery,
    validate_time_for_bigquery,
    validate_timestamptz_for_bigquery,
)


@dataclass(frozen=True)
class _FarDate:
    """A date outside the range of the standard date type."""

    year: int
    month: int
    day: int


@dataclass(frozen=True)
class _LeapTime:
    hour: int
    minute: int
    second: int
    microsecond: int = 0


@dataclass(frozen=True)
class _FarDateTime:
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0
    microsecond: int = 0


def test_validate_numeric_within_bounds():
    numeric = PgNumeric.parse("123.456")
    assert validate_numeric_for_bigquery(numeric) == numeric


def test_validate_numeric_nan_fails():
    with pytest.raises(EtlError) as info:
        validate_numeric_for_bigquery(PgNumeric.NAN)
    assert info.value.kind is ErrorKind.UNSUPPORTED_VALUE_IN_DESTINATION
    assert "NaN cannot be stored in BigQuery" in info.value.detail


def test_validate_numeric_positive_infinity_fails():
    with pytest.raises(EtlError) as info:
        validate_numeric_for_bigquery(PgNumeric.POSITIVE_INFINITY)
    assert info.value.kind is ErrorKind.UNSUPPORTED_VALUE_IN_DESTINATION
    assert "Infinity cannot be stored in BigQuery" in info.value.detail


def test_validate_numeric_negative_infinity_fails():
    with pytest.raises(EtlError) as info:
        validate_numeric_for_bigquery(PgNumeric.NEGATIVE_INFINITY)
    assert info.value.kind is ErrorKind.UNSUPPORTED_VALUE_IN_DESTINATION
    assert "Infinity cannot be stored in BigQuery" in info.value.detail


def test_validate_numeric_oversized_fails():
    oversized = PgNumeric.parse(
        "123456789012345678901234567890123456789012345678901234567890"
        "123456789012345678901234567890"
    )
    with pytest.raises(EtlError) as info:
        validate_numeric_for_bigquery(oversized)
    assert info.value.kind is ErrorKind.UNSUPPORTED_VALUE_IN_DESTINATION
    assert "exceeds BigQuery's BIGNUMERIC limits" in info.value.detail


def test_validate_numeric_digit_limit_boundary():
    at_limit = PgNumeric.parse("9" * 76)
    assert validate_numeric_for_bigquery(at_limit) == at_limit
    with pytest.raises(EtlError):
        validate_numeric_for_bigquery(PgNumeric.parse("9" * 77))


def test_validate_numeric_scale_limit_boundary():
    at_limit = PgNumeric.parse("0." + "1" * 38)
    assert validate_numeric_for_bigquery(at_limit) == at_limit
    with pytest.raises(EtlError):
        validate_numeric_for_bigquery(PgNumeric.parse("0." + "1" * 39))


def test_validate_date_within_bounds():
    value = date(2024, 1, 15)
    assert validate_date_for_bigquery(value) == value
    assert validate_date_for_bigquery(date(1, 1, 1)) == date(1, 1, 1)
    assert validate_date_for_bigquery(date(9999, 12, 31)) == date(9999, 12, 31)


def test_validate_date_before_min_fails():
    with pytest.raises(EtlError) as info:
        validate_date_for_bigquery(_FarDate(0, 12, 31))
    assert info.value.kind is ErrorKind.UNSUPPORTED_VALUE_IN_DESTINATION
    assert "before BigQuery's minimum" in info.value.detail
    assert "0001-01-01" in info.value.detail


def test_validate_date_after_max_fails():
    with pytest.raises(EtlError) as info:
        validate_date_for_bigquery(_FarDate(10000, 1, 1))
    assert info.value.kind is ErrorKind.UNSUPPORTED_VALUE_IN_DESTINATION
    assert "after BigQuery's maximum" in info.value.detail
    assert "9999-12-31" in info.value.detail


def test_validate_time_bounds():
    latest = time(23, 59, 59, 999999)
    assert validate_time_for_bigquery(latest) == latest
    with pytest.raises(EtlError) as info:
        validate_time_for_bigquery(_LeapTime(23, 59, 60))
    assert "after BigQuery's maximum" in info.value.detail
    assert "23:59:59.999999" in info.value.detail


def test_validate_datetime_bounds():
    value = datetime(2024, 6, 15, 12, 30, 45)
    assert validate_datetime_for_bigquery(value) == value
    with pytest.raises(EtlError) as info:
        validate_datetime_for_bigquery(_FarDateTime(10000, 1, 1))
    assert info.value.kind is ErrorKind.UNSUPPORTED_VALUE_IN_DESTINATION
    assert "after BigQuery's maximum supported datetime" in info.value.detail


def test_validate_timestamptz_within_bounds():
    value = datetime(2024, 6, 15, 12, 30, 45, tzinfo=timezone.utc)
    assert validate_timestamptz_for_bigquery(value) == value
    shifted = datetime(2024, 6, 15, 12, 30, tzinfo=timezone(timedelta(hours=2)))
    assert validate_timestamptz_for_bigquery(shifted) == shifted


def test_validate_timestamptz_before_min_fails():
    value = datetime.min.replace(tzinfo=timezone(timedelta(hours=1)))
    with pytest.raises(EtlError) as info:
        validate_timestamptz_for_bigquery(value)
    assert info.value.kind is ErrorKind.UNSUPPORTED_VALUE_IN_DESTINATION
    assert "before BigQuery's minimum supported timestamp" in info.value.detail


def test_validate_timestamptz_after_max_fails():
    value = datetime.max.replace(tzinfo=timezone(timedelta(hours=-1)))
    with pytest.raises(EtlError) as info:
        validate_timestamptz_for_bigquery(value)
    assert "after BigQuery's maximum supported timestamp" in info.value.detail


def test_validate_cell_for_bigquery_valid_types():
    for cell in [
        Cell(CellKind.NULL),
        Cell(CellKind.BOOL, True),
        Cell(CellKind.STRING, "test"),
        Cell(CellKind.I32, 42),
    ]:
        assert validate_cell_for_bigquery(cell) == cell


def test_validate_cell_for_bigquery_invalid_numeric():
    with pytest.raises(EtlError) as info:
        validate_cell_for_bigquery(Cell(CellKind.NUMERIC, PgNumeric.NAN))
    assert info.value.kind is ErrorKind.UNSUPPORTED_VALUE_IN_DESTINATION


def test_validate_cell_for_bigquery_invalid_date():
    with pytest.raises(EtlError) as info:
        validate_cell_for_bigquery(Cell(CellKind.DATE, _FarDate(0, 12, 31)))
    assert "before BigQuery's minimum" in info.value.detail


def test_validate_array_cell_with_invalid_numeric():
    array_cell = ArrayCell(
        CellKind.NUMERIC,
        [PgNumeric.parse("123.456"), PgNumeric.NAN, PgNumeric.parse("789.012")],
    )
    with pytest.raises(EtlError) as info:
        validate_array_cell_for_bigquery(array_cell)
    assert info.value.kind is ErrorKind.UNSUPPORTED_VALUE_IN_DESTINATION
    assert "Element at index 1" in info.value.detail


def test_validate_array_cell_valid():
    array_cell = ArrayCell(CellKind.I32, [1, 2, 3])
    assert validate_array_cell_for_bigquery(array_cell) == array_cell
    cell = Cell(CellKind.ARRAY, array_cell)
    assert validate_cell_for_bigquery(cell) == cell