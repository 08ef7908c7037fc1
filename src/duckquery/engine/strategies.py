"""Row insertion strategies for the manual registration path.

A row that fails to insert is retried with each strategy in order until one
succeeds: a plain ``INSERT ... VALUES``, an ``INSERT ... SELECT`` that casts
every value to its column type, and finally a row of placeholder defaults.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import duckdb

from duckquery.engine.types import (
    cast_literal,
    format_value,
    placeholder_literal,
    quote_identifier,
)


@dataclass(frozen=True)
class Column:
    """Target column of a manually registered table.

    Attributes:
        name: Column name as it appears in the source frame.
        engine_type: Mapped DuckDB type.
    """

    name: str
    engine_type: str


class InsertionStrategy(Protocol):
    """One tier of the per-row recovery cascade."""

    name: str

    def statement(self, table: str, columns: Sequence[Column], row: Sequence[Any]) -> str: ...

    def insert(
        self,
        conn: duckdb.DuckDBPyConnection,
        table: str,
        columns: Sequence[Column],
        row: Sequence[Any],
    ) -> bool: ...


class _BaseInsert:
    name = "base"

    def statement(self, table: str, columns: Sequence[Column], row: Sequence[Any]) -> str:
        raise NotImplementedError

    def insert(
        self,
        conn: duckdb.DuckDBPyConnection,
        table: str,
        columns: Sequence[Column],
        row: Sequence[Any],
    ) -> bool:
        """Run this strategy's statement for one row.

        Returns:
            True if the row was inserted, False if the engine rejected it.
        """
        sql = self.statement(table, columns, row)
        try:
            conn.execute(sql)
        except duckdb.Error:
            return False
        return True


class ValuesInsert(_BaseInsert):
    """``INSERT INTO t VALUES (...)`` with formatted literals."""

    name = "values"

    def statement(self, table: str, columns: Sequence[Column], row: Sequence[Any]) -> str:
        values = ", ".join(format_value(value) for value in row)
        return f"INSERT INTO {quote_identifier(table)} VALUES ({values})"  # nosec B608


class CastInsert(_BaseInsert):
    """``INSERT INTO t SELECT CAST(...)`` with every value cast to its column type."""

    name = "cast"

    def statement(self, table: str, columns: Sequence[Column], row: Sequence[Any]) -> str:
        values = ", ".join(
            cast_literal(value, column.engine_type)
            for column, value in zip(columns, row, strict=True)
        )
        return f"INSERT INTO {quote_identifier(table)} SELECT {values}"  # nosec B608


class PlaceholderInsert(_BaseInsert):
    """Insert type-appropriate defaults so the row count is preserved."""

    name = "placeholder"

    def statement(self, table: str, columns: Sequence[Column], row: Sequence[Any]) -> str:
        values = ", ".join(placeholder_literal(column.engine_type) for column in columns)
        return f"INSERT INTO {quote_identifier(table)} VALUES ({values})"  # nosec B608


DEFAULT_STRATEGIES: tuple[InsertionStrategy, ...] = (
    ValuesInsert(),
    CastInsert(),
    PlaceholderInsert(),
)


def batch_statement(table: str, rows: Sequence[Sequence[Any]]) -> str:
    """Build one multi-row ``INSERT ... VALUES`` statement for a batch."""
    tuples = ", ".join(
        "(" + ", ".join(format_value(value) for value in row) + ")" for row in rows
    )
    return f"INSERT INTO {quote_identifier(table)} VALUES {tuples}"  # nosec B608
