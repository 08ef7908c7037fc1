"""Integration test fixtures."""

from __future__ import annotations

from pathlib import Path

import duckdb
import pytest


@pytest.fixture
def db_file(tmp_path: Path) -> Path:
    """DuckDB database file with a small customers table."""
    file_path = tmp_path / "warehouse.duckdb"

    conn = duckdb.connect(str(file_path))
    conn.execute("""
        CREATE TABLE customers AS
        SELECT *
        FROM (VALUES
            (1, 'Alice', 'Berlin'),
            (2, 'Bob', 'Paris'),
            (3, 'Charlie', 'Rome')
        ) AS t(id, name, city)
    """)
    conn.close()

    return file_path


@pytest.fixture
def corrupt_file(tmp_path: Path) -> Path:
    """File that exists but is not a DuckDB database."""
    file_path = tmp_path / "corrupt.duckdb"
    file_path.write_bytes(b"this is not a duckdb database file\n" * 16)
    return file_path
