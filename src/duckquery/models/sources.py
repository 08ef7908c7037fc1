"""Named data sources accepted by ``querydf``.

A source is either an in-memory ``pandas.DataFrame`` or the path of a DuckDB
database file to attach.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Any

import pandas as pd

from duckquery.core.exceptions import ConfigurationError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class FrameSource:
    """In-memory tabular data."""

    frame: pd.DataFrame


@dataclass(frozen=True)
class DatabaseSource:
    """Path to a DuckDB database file, attached under the source name."""

    path: str


Source = FrameSource | DatabaseSource


def resolve_source(obj: Any) -> Source:
    """Wrap a raw source value in its tagged type.

    Args:
        obj: DataFrame, path, or an already-resolved source.

    Returns:
        FrameSource or DatabaseSource.

    Raises:
        ConfigurationError: If the value is not a supported source type.
    """
    match obj:
        case FrameSource() | DatabaseSource():
            return obj
        case pd.DataFrame():
            return FrameSource(obj)
        case str() | os.PathLike():
            return DatabaseSource(os.fspath(obj))
        case _:
            raise ConfigurationError(
                f"Unsupported source type: {type(obj).__name__}",
                config_key="sources",
            )


def validate_source_name(name: Any) -> str:
    """Check that ``name`` is usable as an unquoted SQL identifier.

    Raises:
        ConfigurationError: If the name is not a valid identifier.
    """
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ConfigurationError(
            f"Invalid source name: {name!r}",
            config_key="sources",
        )
    return name
