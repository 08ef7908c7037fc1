"""Tests for QueryRunner against an in-memory DuckDB session."""

from __future__ import annotations

from collections.abc import Iterator

import duckdb
import pandas as pd
import pytest
from structlog.testing import capture_logs

from duckquery.core.config import SessionConfig
from duckquery.core.exceptions import ExecutionError
from duckquery.engine.query_runner import QueryRunner


@pytest.fixture
def conn() -> Iterator[duckdb.DuckDBPyConnection]:
    """In-memory connection with a small table."""
    connection = duckdb.connect(":memory:")
    connection.execute("CREATE TABLE people (id INTEGER, age INTEGER)")
    connection.execute("INSERT INTO people VALUES (1, 25), (2, 17), (3, 30)")
    yield connection
    connection.close()


class TestExecute:
    """Tests for single-statement execution."""

    def test_returns_dataframe(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Results come back as a DataFrame."""
        result = QueryRunner(conn).execute("SELECT * FROM people ORDER BY id")

        assert isinstance(result, pd.DataFrame)
        assert list(result.columns) == ["id", "age"]
        assert result["id"].tolist() == [1, 2, 3]

    def test_preprocessors_compose_in_order(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Executed text is p2(p1(original))."""
        seen: list[str] = []

        def p1(sql: str) -> str:
            seen.append(sql)
            return sql.replace("table_name", "people")

        def p2(sql: str) -> str:
            seen.append(sql)
            return sql + " ORDER BY id DESC"

        config = SessionConfig(preprocessors=(p1, p2))
        result = QueryRunner(conn, config).execute("SELECT id FROM table_name")

        assert seen == ["SELECT id FROM table_name", "SELECT id FROM people"]
        assert result["id"].tolist() == [3, 2, 1]

    def test_postprocessors_compose_in_order(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Returned table is q2(q1(raw))."""
        config = SessionConfig(
            postprocessors=(
                lambda df: df[df["age"] > 18],
                lambda df: df.assign(adult=True).reset_index(drop=True),
            )
        )
        result = QueryRunner(conn, config).execute("SELECT * FROM people ORDER BY id")

        assert result["age"].tolist() == [25, 30]
        assert result["adult"].all()

    def test_profile_logs_elapsed_time(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Profiling logs timing without changing the data."""
        plain = QueryRunner(conn).execute("SELECT AVG(age) AS avg FROM people")

        with capture_logs() as logs:
            profiled = QueryRunner(conn, SessionConfig(profile=True)).execute(
                "SELECT AVG(age) AS avg FROM people"
            )

        assert profiled["avg"][0] == pytest.approx(plain["avg"][0])
        timing = next(entry for entry in logs if entry["event"] == "Query profiled")
        assert timing["execution_time_ms"] >= 0


class TestErrorPolicies:
    """Tests for the configured error policy."""

    def test_fail_propagates_engine_error(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Engine errors surface unwrapped under the fail policy."""
        with pytest.raises(duckdb.CatalogException):
            QueryRunner(conn).execute("SELECT * FROM nonexistent_table")

    def test_fail_wraps_other_errors(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Non-engine failures carry the statement and the cause."""

        def broken(df: pd.DataFrame) -> pd.DataFrame:
            raise KeyError("missing column")

        config = SessionConfig(postprocessors=(broken,))
        with pytest.raises(ExecutionError) as exc_info:
            QueryRunner(conn, config).execute("SELECT 1")

        assert exc_info.value.sql == "SELECT 1"
        assert isinstance(exc_info.value.cause, KeyError)
        assert exc_info.value.error_code == "EXECUTION_ERROR"

    def test_return_empty(self, conn: duckdb.DuckDBPyConnection) -> None:
        """return_empty yields a zero-column frame silently."""
        with capture_logs() as logs:
            result = QueryRunner(conn, SessionConfig(on_error="return_empty")).execute(
                "SELECT * FROM nonexistent_table"
            )

        assert result.empty
        assert len(result.columns) == 0
        assert logs == []

    def test_log(self, conn: duckdb.DuckDBPyConnection) -> None:
        """log yields a zero-column frame and always logs the error."""
        with capture_logs() as logs:
            result = QueryRunner(conn, SessionConfig(on_error="log")).execute(
                "SELECT * FROM nonexistent_table"
            )

        assert result.empty
        assert len(result.columns) == 0
        assert logs[0]["event"] == "Query execution failed"
        assert logs[0]["log_level"] == "error"
        assert "nonexistent_table" in logs[0]["error"]


class TestExecuteMany:
    """Tests for statement sequences."""

    def test_returns_last_result(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Only the final statement's result is returned."""
        result = QueryRunner(conn).execute_many(
            [
                "CREATE TABLE t (id INTEGER, name VARCHAR)",
                "INSERT INTO t VALUES (1, 'Alice'), (2, 'Bob')",
                "SELECT * FROM t WHERE id = 2",
            ]
        )

        assert result.shape == (1, 2)
        assert result["name"][0] == "Bob"

    def test_error_stops_sequence(self, conn: duckdb.DuckDBPyConnection) -> None:
        """A failing statement stops the remaining ones under fail."""
        with pytest.raises(duckdb.Error):
            QueryRunner(conn).execute_many(
                ["SELECT * FROM nope", "CREATE TABLE never_created (i INTEGER)"]
            )

        tables = conn.execute("SELECT table_name FROM information_schema.tables").fetchall()
        assert ("never_created",) not in tables

    def test_policy_applies_per_statement(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Non-fail policies let later statements run."""
        result = QueryRunner(conn, SessionConfig(on_error="return_empty")).execute_many(
            ["SELECT * FROM nope", "SELECT COUNT(*) AS n FROM people"]
        )
        assert result["n"][0] == 3
