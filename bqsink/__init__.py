"""Map Postgres schemas, values and table names onto BigQuery."""

__version__ = "0.1.0"