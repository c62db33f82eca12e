# bqsink

`bqsink` has the building blocks for writing Postgres data into Google BigQuery. It
maps Postgres column schemas to BigQuery DDL fragments and Storage Write descriptors.
It checks values against BigQuery's supported ranges, names versioned tables, and
splits rows into batches. It has no runtime dependencies.

## Modules

### `bqsink.types`

This module holds the shared value types:

- `EtlError`: the exception that the package raises. It carries a `kind` (an
  `ErrorKind` member), a `description` and an optional `detail`.
- `PgType`: the Postgres column types. `is_array_type` tells you whether a type is
  an array type.
- `ColumnSchema`, `TableName` and `TableSchema`: schemas for columns and tables.
- `PgNumeric`: a Postgres numeric. `PgNumeric.parse` reads its text form, and
  `PgNumeric.NAN`, `PgNumeric.POSITIVE_INFINITY` and `PgNumeric.NEGATIVE_INFINITY`
  hold the special values.
- `Cell`, `ArrayCell`, `CellKind` and `TableRow`: column values tagged by their kind.
- `to_non_optional`: turns a cell that has no value into a null cell. It raises an
  `EtlError` of kind `NULL_VALUES_NOT_SUPPORTED_IN_ARRAY_IN_DESTINATION` when an array
  holds a null element.

### `bqsink.validation`

These functions check values against BigQuery's ranges:

- `validate_numeric_for_bigquery`: rejects NaN and infinities. It also rejects any
  value with more than 76 digits, or more than 38 digits after the decimal point.
- `validate_date_for_bigquery`, `validate_time_for_bigquery`,
  `validate_datetime_for_bigquery` and `validate_timestamptz_for_bigquery`: check
  the ranges 0001-01-01 to 9999-12-31 and 00:00:00 to 23:59:59.999999. A
  timestamp is compared in UTC.
- `validate_cell_for_bigquery` and `validate_array_cell_for_bigquery`: dispatch on
  the cell kind. An error on an array element names the index of that element.

When a value is valid, each validator returns its argument unchanged. When a value
is out of range, the validator raises `EtlError` with kind
`UNSUPPORTED_VALUE_IN_DESTINATION`. Values are never clamped.

### `bqsink.schema`

This module builds DDL fragments and Storage Write descriptors:

- `sanitize_identifier`: rejects an identifier that is empty or that holds control
  characters. It escapes backticks and backslashes with a backslash.
- `postgres_to_bigquery_type`: returns the BigQuery SQL type for a Postgres type,
  such as `int64`, `bignumeric` or `array<string>`. A type it does not know maps to
  `string`.
- `column_spec`, `add_primary_key_clause`, `create_columns_spec` and
  `max_staleness_option`: build the pieces of a `CREATE TABLE` statement.
- `column_schemas_to_table_descriptor`: builds a `TableDescriptor` of
  `FieldDescriptor` fields, each with a `ColumnType` and a `ColumnMode`. It appends
  the required `_CHANGE_TYPE` column. When asked, it also appends the
  `_CHANGE_SEQUENCE_NUMBER` column.
- `OperationType`: the change types `UPSERT` and `DELETE`. `to_cell` returns a change
  type as a string cell.

### `bqsink.table_ids`

This module names tables and splits row batches:

- `table_name_to_bigquery_table_id`: doubles the underscores in the schema name and
  the table name, then joins the two with a single underscore. `a_b.c` becomes
  `a__b_c`, and `a.b_c` becomes `a_b__c`.
- `SequencedTableId`: a versioned table id written as `<table_id>_<sequence>`.
  `parse` splits the text at the last underscore and accepts an unsigned 64-bit
  sequence. `next` returns the next version, and `str()` formats the id.
- `split_table_rows`: spreads rows across at most `max_concurrent_streams` batches
  of about equal size. The earlier batches take the extra rows.

## Example

```python
from bqsink.schema import create_columns_spec, max_staleness_option
from bqsink.table_ids import SequencedTableId, table_name_to_bigquery_table_id
from bqsink.types import ColumnSchema, PgType, TableName

columns = [
    ColumnSchema("id", PgType.INT4, nullable=False, primary=True),
    ColumnSchema("name", PgType.TEXT),
]
create_columns_spec(columns)
# "(`id` int64 not null,`name` string, primary key (`id`) not enforced)"
max_staleness_option(15)
# "options (max_staleness = interval 15 minute)"

table_name_to_bigquery_table_id(TableName("a_b", "c"))  # "a__b_c"
str(SequencedTableId.parse("a__b_c_3").next())           # "a__b_c_4"
```

## What it does not do

`bqsink` does not connect to BigQuery. It does not run queries, create or drop
tables, or stream rows, and it does not read change events or keep a store of table
mappings. It produces SQL text, descriptors, validated cells, table ids and row
batches. Your own code must send these to BigQuery.

## Installing and testing

```
pip install ".[test]"
pytest
```