"""Query runner for executing statements against a DuckDB session.

This module applies statement preprocessors, runs the statement, applies
result postprocessors, and maps failures to the configured error policy.
"""

from __future__ import annotations

import time
from collections.abc import Sequence

import duckdb
import pandas as pd

from duckquery.core.config import ErrorPolicy, SessionConfig
from duckquery.core.exceptions import ExecutionError
from duckquery.core.logging import get_logger, log_progress
from duckquery.engine.connector import preview

logger = get_logger(__name__)


class QueryRunner:
    """Executes statements on one connection under one session configuration.

    Attributes:
        conn: Borrowed DuckDB connection.
        config: Session configuration.
    """

    def __init__(
        self,
        conn: duckdb.DuckDBPyConnection,
        config: SessionConfig | None = None,
    ) -> None:
        self.conn = conn
        self.config = config or SessionConfig()

    def preprocess(self, sql: str) -> str:
        """Apply every preprocessor in declared order."""
        for preprocessor in self.config.preprocessors:
            sql = preprocessor(sql)
        return sql

    def postprocess(self, result: pd.DataFrame) -> pd.DataFrame:
        """Apply every postprocessor in declared order."""
        for postprocessor in self.config.postprocessors:
            result = postprocessor(result)
        return result

    def execute(self, sql: str) -> pd.DataFrame:
        """Execute one statement and return its result as a DataFrame.

        Args:
            sql: SQL statement, before preprocessing.

        Returns:
            Postprocessed result, or an empty frame when the error policy
            absorbs a failure.

        Raises:
            duckdb.Error: Engine errors under the ``fail`` policy.
            ExecutionError: Any other failure under the ``fail`` policy.
        """
        final_sql = self.preprocess(sql)
        log_progress(logger, self.config.verbose, "Executing query", sql=preview(final_sql))

        try:
            start_time = time.perf_counter()
            result = self.conn.execute(final_sql).fetchdf()
            if self.config.profile:
                execution_time_ms = (time.perf_counter() - start_time) * 1000
                logger.info(
                    "Query profiled",
                    sql=preview(final_sql),
                    execution_time_ms=round(execution_time_ms, 2),
                )
            return self.postprocess(result)
        except Exception as e:
            return self._handle_error(sql, e)

    def _handle_error(self, sql: str, error: Exception) -> pd.DataFrame:
        policy = self.config.on_error
        if policy is ErrorPolicy.FAIL:
            if isinstance(error, duckdb.Error):
                raise error
            raise ExecutionError(
                message="Failed to execute query",
                sql=sql,
                original_error=str(error),
            ) from error

        if policy is ErrorPolicy.LOG:
            logger.error("Query execution failed", sql=preview(sql), error=str(error))
        else:
            log_progress(
                logger,
                self.config.verbose,
                "Query execution failed, returning empty DataFrame",
                error=str(error),
            )
        return pd.DataFrame()

    def execute_many(self, sqls: Sequence[str]) -> pd.DataFrame:
        """Execute statements in order and return the last result.

        Args:
            sqls: Statements to run.

        Returns:
            Result of the last statement (an empty frame if there are none).
        """
        result = pd.DataFrame()
        total = len(sqls)
        for i, sql in enumerate(sqls, start=1):
            log_progress(logger, self.config.verbose, "Executing query", index=i, total=total)
            result = self.execute(sql)
        return result
