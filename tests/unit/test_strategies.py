"""Tests for the row insertion strategies."""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import duckdb
import pytest
from structlog.testing import capture_logs

from duckquery.engine.strategies import (
    DEFAULT_STRATEGIES,
    CastInsert,
    Column,
    PlaceholderInsert,
    ValuesInsert,
    batch_statement,
)

COLUMNS = [
    Column("id", "INTEGER"),
    Column("name", "VARCHAR"),
    Column("active", "BOOLEAN"),
    Column("joined", "DATE"),
]
ROW = (1, "O'Brien", True, date(2024, 1, 1))


@pytest.fixture
def conn() -> MagicMock:
    """Connection whose execute succeeds."""
    return MagicMock()


@pytest.fixture
def failing_conn() -> MagicMock:
    """Connection whose execute always raises an engine error."""
    conn = MagicMock()
    conn.execute.side_effect = duckdb.ConversionException("Could not convert")
    return conn


class TestStatements:
    """Tests for the SQL each strategy generates."""

    def test_values_statement(self) -> None:
        """Plain VALUES uses formatted literals."""
        sql = ValuesInsert().statement("people", COLUMNS, ROW)
        assert sql == """INSERT INTO "people" VALUES (1, 'O''Brien', TRUE, '2024-01-01')"""

    def test_cast_statement(self) -> None:
        """The cast tier casts every value to its column type."""
        sql = CastInsert().statement("people", COLUMNS, (1, None, True, date(2024, 1, 1)))
        assert sql == (
            'INSERT INTO "people" SELECT CAST(\'1\' AS INTEGER), NULL::VARCHAR, '
            "CAST('True' AS BOOLEAN), CAST('2024-01-01' AS DATE)"
        )

    def test_placeholder_statement(self) -> None:
        """The placeholder tier ignores the row's values."""
        sql = PlaceholderInsert().statement("people", COLUMNS, ROW)
        assert sql == """INSERT INTO "people" VALUES (0, '', FALSE, '2000-01-01')"""

    def test_batch_statement(self) -> None:
        """A batch is one multi-row VALUES statement."""
        sql = batch_statement("t", [(1, "a"), (2, None)])
        assert sql == """INSERT INTO "t" VALUES (1, 'a'), (2, NULL)"""


class TestInsert:
    """Tests for insert success/failure reporting."""

    @pytest.mark.parametrize("strategy", DEFAULT_STRATEGIES)
    def test_reports_success(self, strategy, conn: MagicMock) -> None:
        """A strategy returns True when the engine accepts the statement."""
        assert strategy.insert(conn, "people", COLUMNS, ROW) is True
        conn.execute.assert_called_once()

    @pytest.mark.parametrize("strategy", DEFAULT_STRATEGIES)
    def test_reports_failure(self, strategy, failing_conn: MagicMock) -> None:
        """A strategy returns False instead of raising on engine errors."""
        assert strategy.insert(failing_conn, "people", COLUMNS, ROW) is False

    @pytest.mark.parametrize("strategy", DEFAULT_STRATEGIES)
    def test_failure_is_silent(self, strategy, failing_conn: MagicMock) -> None:
        """A rejected tier logs nothing; the registrar decides what to report."""
        with capture_logs() as logs:
            strategy.insert(failing_conn, "people", COLUMNS, ROW)

        assert logs == []

    def test_non_engine_errors_propagate(self) -> None:
        """Only engine errors are treated as a failed tier."""
        conn = MagicMock()
        conn.execute.side_effect = KeyboardInterrupt
        with pytest.raises(KeyboardInterrupt):
            ValuesInsert().insert(conn, "people", COLUMNS, ROW)

    def test_default_order(self) -> None:
        """Tiers run values, then cast, then placeholder."""
        assert [s.name for s in DEFAULT_STRATEGIES] == ["values", "cast", "placeholder"]
