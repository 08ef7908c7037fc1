"""DuckDB connection factory.

This module opens one DuckDB session per call against an in-memory or
file-backed store, honours read-only intent, and applies session options
and initialization queries from a ``SessionConfig``.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import duckdb

from duckquery.core.config import MEMORY_DATABASE, SessionConfig
from duckquery.core.exceptions import (
    BackendOpenError,
    ExtensionLoadError,
    SourceUnavailableError,
)
from duckquery.core.logging import get_logger, log_progress
from duckquery.engine.types import format_value, quote_text

if TYPE_CHECKING:
    from collections.abc import Generator, Sequence

logger = get_logger(__name__)

# Options consumed by the registrar rather than the engine session
REGISTRAR_OPTIONS = frozenset({"batch_size", "force_manual_registration"})


def preview(sql: str, width: int = 30) -> str:
    """Shorten a statement for log lines."""
    sql = " ".join(sql.split())
    return sql if len(sql) <= width else f"{sql[:width]}..."


def list_tables(
    conn: duckdb.DuckDBPyConnection,
    catalog: str | None = None,
) -> list[str]:
    """List tables and views, optionally restricted to one attached catalog.

    Args:
        conn: Open connection.
        catalog: Attached database name.

    Returns:
        List of table/view names.
    """
    if catalog is None:
        result = conn.execute("SELECT table_name FROM information_schema.tables")
    else:
        result = conn.execute(
            "SELECT table_name FROM information_schema.tables WHERE table_catalog = ?",
            [catalog],
        )
    return [row[0] for row in result.fetchall()]


class DuckDBConnector:
    """Owns exactly one DuckDB session for the duration of one call.

    Attributes:
        location: ``":memory:"`` or a path to a database file.
        config: Session configuration.
    """

    def __init__(
        self,
        location: str | os.PathLike[str] = MEMORY_DATABASE,
        config: SessionConfig | None = None,
    ) -> None:
        self.location = str(location)
        self.config = config or SessionConfig()
        self._connection: duckdb.DuckDBPyConnection | None = None

    @property
    def is_memory(self) -> bool:
        """Whether the store is the in-memory sentinel."""
        return self.location == MEMORY_DATABASE

    @property
    def read_only(self) -> bool:
        """Effective access mode; always False for in-memory stores."""
        return self.config.readonly and not self.is_memory

    def open(self) -> duckdb.DuckDBPyConnection:
        """Open and configure the session.

        Returns:
            Configured DuckDB connection.

        Raises:
            SourceUnavailableError: If a read-only store does not exist.
            BackendOpenError: If the engine cannot open the store.
            ExtensionLoadError: If a requested extension fails to load.
        """
        if self._connection is not None:
            return self._connection

        verbose = self.config.verbose
        log_progress(
            logger,
            verbose,
            "Initializing connection",
            location=self.location,
            read_only=self.read_only,
        )

        if self.read_only and not Path(self.location).exists():
            raise SourceUnavailableError(self.location)

        try:
            conn = duckdb.connect(self.location, read_only=self.read_only)
        except duckdb.Error as e:
            raise BackendOpenError(self.location, original_error=str(e)) from e

        self._connection = conn
        try:
            self.apply_options(conn)
            self.run_init_queries(conn)
        except BaseException:
            self.close()
            raise

        return conn

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        """Get the open connection, opening it on first use."""
        return self.open()

    def apply_options(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Apply ``config.options`` to the session in insertion order."""
        for key, value in self.config.options.items():
            log_progress(logger, self.config.verbose, "Setting config", key=key, value=value)

            if key in REGISTRAR_OPTIONS:
                continue
            if key == "memory_limit":
                conn.execute(f"SET memory_limit = {quote_text(str(value))}")
            elif key == "threads":
                self._set_threads(conn, value)
            elif key == "extensions":
                self._load_extensions(conn, value)
            else:
                self._set_generic(conn, key, value)

    def _set_threads(self, conn: duckdb.DuckDBPyConnection, threads: int) -> None:
        try:
            conn.execute(f"SET threads = {int(threads)}")
        except duckdb.Error as e:
            current: Any = None
            try:
                row = conn.execute("SELECT current_setting('threads')").fetchone()
                current = row[0] if row else None
            except duckdb.Error:
                pass
            logger.warning(
                "Failed to set threads, keeping current thread count",
                requested=threads,
                current=current,
                error=str(e),
            )

    def _load_extensions(
        self,
        conn: duckdb.DuckDBPyConnection,
        extensions: str | Sequence[str],
    ) -> None:
        names = [extensions] if isinstance(extensions, str) else list(extensions)
        for name in names:
            log_progress(logger, self.config.verbose, "Loading extension", extension=name)
            try:
                conn.execute(f"INSTALL {name}")
                conn.execute(f"LOAD {name}")
            except duckdb.Error as e:
                raise ExtensionLoadError(name, original_error=str(e)) from e

    def _set_generic(self, conn: duckdb.DuckDBPyConnection, key: str, value: Any) -> None:
        try:
            conn.execute(f"SET {key} = {format_value(value)}")
        except duckdb.Error as e:
            logger.warning("Failed to set config parameter", key=key, error=str(e))

    def run_init_queries(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Run initialization statements in order; failures propagate."""
        for query in self.config.init_queries:
            log_progress(
                logger, self.config.verbose, "Executing init query", sql=preview(query)
            )
            conn.execute(query)

    def close(self) -> None:
        """Close the session. Never raises."""
        if self._connection is None:
            return
        log_progress(logger, self.config.verbose, "Closing connection", location=self.location)
        try:
            self._connection.close()
        except Exception as e:
            logger.error("Failed to close connection", location=self.location, error=str(e))
        finally:
            self._connection = None

    @contextmanager
    def connection(self) -> Generator[duckdb.DuckDBPyConnection]:
        """Context manager that opens the session and always closes it.

        Example:
            with DuckDBConnector("sales.duckdb", config).connection() as conn:
                conn.execute("SELECT 1").fetchall()
        """
        try:
            yield self.open()
        finally:
            self.close()

    def __enter__(self) -> DuckDBConnector:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
