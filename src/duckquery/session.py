"""``querydf``: run SQL against DataFrames and DuckDB database files.

Example:
    df = pd.DataFrame({"id": [1, 2, 3], "name": ["Alice", "Bob", "Charlie"]})
    querydf(df, "SELECT * FROM df WHERE id > 1")

    querydf(
        {"orders": orders, "warehouse": "warehouse.duckdb"},
        "SELECT * FROM orders JOIN warehouse.customers USING (customer_id)",
        readonly=True,
    )
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import duckdb
import pandas as pd

from duckquery.core.config import (
    MEMORY_DATABASE,
    Postprocessor,
    Preprocessor,
    SessionConfig,
    get_settings,
)
from duckquery.core.exceptions import ConfigurationError
from duckquery.core.logging import ensure_logging, get_logger
from duckquery.engine.connector import DuckDBConnector
from duckquery.engine.query_runner import QueryRunner
from duckquery.engine.registrar import SourceRegistrar
from duckquery.models.sources import Source, resolve_source, validate_source_name

logger = get_logger(__name__)

DEFAULT_FRAME_NAME = "df"

SetupCallback = Callable[[duckdb.DuckDBPyConnection], Any]


def resolve_call(source: Any) -> tuple[str, dict[str, Source]]:
    """Resolve the call shape into a store location and named sources.

    * ``None``, ``str`` or ``os.PathLike``: a store location, no sources.
    * ``pandas.DataFrame``: registered as ``df`` on an in-memory store.
    * ``Mapping``: named DataFrames and/or database paths on an in-memory store.

    Raises:
        ConfigurationError: For unsupported shapes, source types or names.
    """
    match source:
        case None:
            return MEMORY_DATABASE, {}
        case str() | os.PathLike():
            return os.fspath(source), {}
        case pd.DataFrame():
            return MEMORY_DATABASE, {DEFAULT_FRAME_NAME: resolve_source(source)}
        case Mapping():
            return MEMORY_DATABASE, {
                validate_source_name(name): resolve_source(value)
                for name, value in source.items()
            }
        case _:
            raise ConfigurationError(
                f"Unsupported source specification: {type(source).__name__}",
                config_key="source",
            )


def _statement_list(statements: str | Iterable[str]) -> list[str]:
    if isinstance(statements, str):
        return [statements]
    sqls = list(statements)
    if not sqls or not all(isinstance(sql, str) for sql in sqls):
        raise ConfigurationError(
            "statements must be a string or a non-empty sequence of strings",
            config_key="statements",
        )
    return sqls


def querydf(
    source: Any,
    statements: str | Iterable[str],
    *,
    setup: SetupCallback | None = None,
    init_queries: str | Iterable[str] = (),
    options: Mapping[str, Any] | None = None,
    verbose: bool = False,
    profile: bool = False,
    preprocessors: Iterable[Preprocessor] = (),
    postprocessors: Iterable[Postprocessor] = (),
    on_error: str = "fail",
    readonly: bool = False,
) -> pd.DataFrame:
    """Run one or more SQL statements and return the last result.

    Args:
        source: A database path (or ``":memory:"``), a DataFrame queryable as
            ``df``, or a mapping of names to DataFrames and database paths.
        statements: One statement or a sequence run in order.
        setup: Called with the live connection before the statements run.
            The connection stays owned by ``querydf``; the return value is
            ignored.
        init_queries: Statements run right after the connection is configured.
        options: DuckDB and registration options (``memory_limit``,
            ``threads``, ``extensions``, ``batch_size``,
            ``force_manual_registration`` or any DuckDB setting).
        verbose: Log progress and recovery steps.
        profile: Log per-statement and total wall-clock time.
        preprocessors: Statement-text transforms applied in order.
        postprocessors: Result-frame transforms applied in order.
        on_error: ``"fail"``, ``"return_empty"`` or ``"log"``.
        readonly: Open database files and attachments read-only.

    Returns:
        pandas DataFrame with the result of the last statement.

    Raises:
        ConfigurationError: Invalid arguments, before any connection is opened.
        DatabaseConnectionError: The store cannot be opened.
        RegistrationError: A source cannot be registered.
        duckdb.Error: A statement failed under the ``fail`` policy.
    """
    ensure_logging()
    config = SessionConfig.build(
        settings=get_settings(),
        init_queries=init_queries,
        options=options,
        verbose=verbose,
        profile=profile,
        preprocessors=preprocessors,
        postprocessors=postprocessors,
        on_error=on_error,
        readonly=readonly,
    )
    sqls = _statement_list(statements)
    location, sources = resolve_call(source)

    start_time = time.perf_counter()
    with DuckDBConnector(location, config).connection() as conn:
        SourceRegistrar(conn, config).register_all(sources)

        if setup is not None:
            setup(conn)

        runner = QueryRunner(conn, config)
        result = runner.execute(sqls[0]) if len(sqls) == 1 else runner.execute_many(sqls)

    if profile:
        total_time_ms = (time.perf_counter() - start_time) * 1000
        logger.info("Total time", total_time_ms=round(total_time_ms, 2))

    return result
