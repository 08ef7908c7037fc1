"""Pytest fixtures for the test suite."""

from __future__ import annotations

from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest
import structlog

from duckquery.core.config import get_settings

CATEGORIES = ["A", "B", "C", "D"]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Isolate tests from DUCKQUERY_* variables, .env files and logging config."""
    for key in [
        "DUCKQUERY_LOG_LEVEL",
        "DUCKQUERY_ENVIRONMENT",
        "DUCKQUERY_DEFAULT_BATCH_SIZE",
        "DUCKQUERY_DEFAULT_MEMORY_LIMIT",
        "DUCKQUERY_DEFAULT_THREADS",
    ]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def people_df() -> pd.DataFrame:
    """Three-row frame used by the basic scenarios."""
    return pd.DataFrame({"id": [1, 2, 3], "name": ["Alice", "Bob", "Charlie"]})


@pytest.fixture
def customers_df() -> pd.DataFrame:
    """Customers for join scenarios."""
    return pd.DataFrame({"id": [1, 2, 3], "name": ["Alice", "Bob", "Charlie"]})


@pytest.fixture
def orders_df() -> pd.DataFrame:
    """Orders for join scenarios."""
    return pd.DataFrame(
        {"id": [101, 102, 103], "customer_id": [1, 3, 2], "amount": [100, 200, 150]}
    )


@pytest.fixture
def mixed_types_df() -> pd.DataFrame:
    """One column per supported type, with a missing value in each nullable column."""
    return pd.DataFrame(
        {
            "id": [1, 2, 3],
            "score": [95.5, np.nan, 88.0],
            "name": ["Alice", None, "O'Brien"],
            "active": [True, False, True],
            "joined": [date(2024, 1, 1), date(2024, 2, 1), None],
            "seen_at": pd.to_datetime(["2024-01-01 10:00", None, "2024-03-01 12:30"]),
            "visits": pd.array([10, None, 30], dtype="Int64"),
        }
    )


@pytest.fixture
def large_df() -> pd.DataFrame:
    """1000 rows spread over four categories."""
    rng = np.random.default_rng(42)
    return pd.DataFrame(
        {
            "id": np.arange(1, 1001),
            "value": rng.random(1000),
            "category": rng.choice(CATEGORIES, 1000),
        }
    )


@pytest.fixture
def sample_timestamp() -> datetime:
    """Fixed timestamp for formatting tests."""
    return datetime(2024, 3, 1, 12, 30, 0)
