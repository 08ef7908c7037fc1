"""DuckDB engine layer.

This package provides:
- Connection opening and session configuration
- DataFrame registration (native and manual) and database attachment
- Statement execution with error policies
- Type mapping and literal formatting for generated SQL
"""

from duckquery.engine.connector import DuckDBConnector, list_tables
from duckquery.engine.query_runner import QueryRunner
from duckquery.engine.registrar import NativeRegistration, SourceRegistrar, register_source
from duckquery.engine.strategies import (
    DEFAULT_STRATEGIES,
    CastInsert,
    PlaceholderInsert,
    ValuesInsert,
)
from duckquery.engine.types import format_value, map_type

__all__ = [
    # Connection and query execution
    "DuckDBConnector",
    "QueryRunner",
    "list_tables",
    # Registration
    "SourceRegistrar",
    "NativeRegistration",
    "register_source",
    "DEFAULT_STRATEGIES",
    "ValuesInsert",
    "CastInsert",
    "PlaceholderInsert",
    # Type mapping
    "map_type",
    "format_value",
]
