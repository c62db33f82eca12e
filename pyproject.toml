[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bqsink"
version = "0.1.0"
description = "Map Postgres column schemas, values and table names onto BigQuery: DDL fragments, write descriptors, range validation, versioned table ids and row batching."
requires-python = ">=3.10"
dependencies = []
keywords = ["bigquery", "etl", "cdc", "postgres", "schema", "validation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["bqsink"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
