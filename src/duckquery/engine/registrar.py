"""Source registration into a DuckDB session.

DataFrames are exposed through DuckDB's native zero-copy registration when
it is available, otherwise recreated as typed temporary tables with batched
inserts and per-row degraded recovery. Database files are attached.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from typing import Any

import duckdb
import pandas as pd

from duckquery.core.config import SessionConfig
from duckquery.core.exceptions import RegistrationError
from duckquery.core.logging import get_logger, log_progress
from duckquery.engine.connector import list_tables
from duckquery.engine.strategies import (
    DEFAULT_STRATEGIES,
    Column,
    InsertionStrategy,
    batch_statement,
)
from duckquery.engine.types import column_type, map_type, quote_identifier, quote_text
from duckquery.models.sources import DatabaseSource, resolve_source

logger = get_logger(__name__)


class NativeRegistration(StrEnum):
    """Outcome of the native registration attempt."""

    SUPPORTED = "supported"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"


class SourceRegistrar:
    """Makes named sources queryable inside one connection.

    Attributes:
        conn: Borrowed DuckDB connection.
        config: Session configuration.
        strategies: Ordered per-row insertion strategies for the manual path.
    """

    def __init__(
        self,
        conn: duckdb.DuckDBPyConnection,
        config: SessionConfig | None = None,
        strategies: Sequence[InsertionStrategy] = DEFAULT_STRATEGIES,
    ) -> None:
        self.conn = conn
        self.config = config or SessionConfig()
        self.strategies = tuple(strategies)

    def register(self, name: str, source: Any) -> None:
        """Register a DataFrame or attach a database file under ``name``.

        Args:
            name: Name the source resolves to in SQL.
            source: DataFrame, database path, or resolved source.

        Raises:
            RegistrationError: If attaching fails or a frame cannot be loaded.
        """
        resolved = resolve_source(source)
        if isinstance(resolved, DatabaseSource):
            self.attach(name, resolved.path)
        else:
            self.register_frame(name, resolved.frame)

    def register_all(self, sources: dict[str, Any]) -> None:
        """Register sources in mapping iteration order."""
        for name, source in sources.items():
            self.register(name, source)

    def attach(self, name: str, path: str) -> None:
        """Attach a database file under ``name``, read-only if configured."""
        sql = f"ATTACH {quote_text(path)} AS {quote_identifier(name)}"
        if self.config.readonly:
            sql += " (READ_ONLY)"

        log_progress(logger, self.config.verbose, "Attaching database", sql=sql)
        try:
            self.conn.execute(sql)
        except duckdb.Error as e:
            raise RegistrationError(
                f"Failed to attach database: {path}",
                name=name,
                sql=sql,
                original_error=str(e),
            ) from e

        if self.config.verbose:
            logger.info("Attached database", name=name, tables=list_tables(self.conn, name))

    def register_frame(self, name: str, frame: pd.DataFrame) -> None:
        """Expose a DataFrame as ``name``, natively or via the manual path."""
        verbose = self.config.verbose
        log_progress(logger, verbose, "Registering DataFrame", name=name, rows=len(frame))

        if self.config.force_manual_registration:
            log_progress(logger, verbose, "Forcing manual DataFrame registration", name=name)
        else:
            outcome = self.try_native(name, frame)
            if outcome is NativeRegistration.SUPPORTED:
                return
            log_progress(
                logger,
                verbose,
                "Native registration unavailable, falling back to manual method",
                name=name,
                outcome=str(outcome),
            )

        self.register_manual(name, frame)

    def probe_native(self) -> NativeRegistration:
        """Check whether the running engine build exposes native registration."""
        if callable(getattr(self.conn, "register", None)):
            return NativeRegistration.SUPPORTED
        return NativeRegistration.UNSUPPORTED

    def try_native(self, name: str, frame: pd.DataFrame) -> NativeRegistration:
        """Attempt zero-copy registration of ``frame``.

        Returns:
            SUPPORTED on success, UNSUPPORTED if the capability is missing,
            FAILED if the engine raised.
        """
        capability = self.probe_native()
        if capability is not NativeRegistration.SUPPORTED:
            return capability

        try:
            self.conn.register(name, frame)
        except Exception as e:
            log_progress(
                logger,
                self.config.verbose,
                "Native registration failed",
                name=name,
                error=str(e),
            )
            return NativeRegistration.FAILED

        log_progress(logger, self.config.verbose, "Using native DataFrame registration", name=name)
        return NativeRegistration.SUPPORTED

    def columns_for(self, frame: pd.DataFrame) -> list[Column]:
        """Derive target columns and their DuckDB types from a frame."""
        return [
            Column(name=str(col), engine_type=map_type(column_type(frame[col])))
            for col in frame.columns
        ]

    def register_manual(self, name: str, frame: pd.DataFrame) -> None:
        """Recreate ``frame`` as a typed temporary table.

        Rows are sent in batches of ``config.batch_size``. A batch the engine
        rejects is replayed one row at a time through ``strategies``.
        """
        columns = self.columns_for(frame)
        if not columns:
            raise RegistrationError("Cannot register a DataFrame with no columns", name=name)

        schema = ", ".join(f"{quote_identifier(c.name)} {c.engine_type}" for c in columns)
        create_sql = f"CREATE OR REPLACE TEMPORARY TABLE {quote_identifier(name)} ({schema})"
        try:
            self.conn.execute(create_sql)
        except duckdb.Error as e:
            raise RegistrationError(
                f"Failed to create table for DataFrame: {name}",
                name=name,
                sql=create_sql,
                original_error=str(e),
            ) from e

        total_rows = len(frame)
        if total_rows == 0:
            return

        batch_size = self.config.batch_size
        log_progress(
            logger,
            self.config.verbose,
            "Inserting rows",
            name=name,
            rows=total_rows,
            batch_size=batch_size,
        )

        rows = list(frame.itertuples(index=False, name=None))
        for start in range(0, total_rows, batch_size):
            batch = rows[start : start + batch_size]
            try:
                self.conn.execute(batch_statement(name, batch))
            except duckdb.Error as e:
                log_progress(
                    logger,
                    self.config.verbose,
                    "Batch insert failed, inserting rows individually",
                    name=name,
                    first_row=start,
                    error=str(e),
                )
                for offset, row in enumerate(batch):
                    self.insert_row(name, columns, row, start + offset)

        log_progress(logger, self.config.verbose, "Inserted rows", name=name, rows=total_rows)

    def insert_row(
        self,
        name: str,
        columns: Sequence[Column],
        row: Sequence[Any],
        index: int,
    ) -> str:
        """Insert one row, trying each strategy in order.

        Returns:
            Name of the strategy that inserted the row.

        Raises:
            RegistrationError: If every strategy failed.
        """
        for tier, strategy in enumerate(self.strategies):
            if strategy.insert(self.conn, name, columns, row):
                return strategy.name
            if self.config.verbose and tier + 1 < len(self.strategies):
                logger.warning(
                    "Row insert failed, trying next strategy",
                    name=name,
                    row=index,
                    failed=strategy.name,
                    next=self.strategies[tier + 1].name,
                )

        raise RegistrationError(f"Failed to insert row {index}", name=name)


def register_source(
    conn: duckdb.DuckDBPyConnection,
    name: str,
    source: Any,
    config: SessionConfig | None = None,
) -> None:
    """Register one source on an open connection.

    Intended for ``querydf`` setup callbacks that need extra sources on the
    borrowed connection.

    Args:
        conn: Open DuckDB connection.
        name: Name the source resolves to in SQL.
        source: DataFrame or database path.
        config: Optional session configuration.
    """
    SourceRegistrar(conn, config).register(name, source)

