"""Type mapping and literal formatting for the manual registration path.

Moves pandas columns across the boundary into DuckDB: ``column_type`` derives
a column's semantic type, ``map_type`` turns it into a DuckDB column type and
``format_value`` renders one cell as a SQL literal.

Text literals are only escaped by doubling single quotes. Inputs are assumed
to be trusted local data.
"""

from __future__ import annotations

import numbers
import types
from datetime import date, datetime
from typing import Any, Optional, Union, get_args, get_origin

import numpy as np
import pandas as pd

NULL = "NULL"

PLACEHOLDERS = {
    "INTEGER": "0",
    "DOUBLE": "0",
    "VARCHAR": "''",
    "BOOLEAN": "FALSE",
    "DATE": "'2000-01-01'",
    "TIMESTAMP": "'2000-01-01 00:00:00'",
}

# pandas.api.types.infer_dtype labels -> element types
_INFERRED_TYPES: dict[str, Any] = {
    "integer": int,
    "floating": float,
    "mixed-integer-float": float,
    "decimal": float,
    "string": str,
    "boolean": bool,
    "date": date,
    "datetime": datetime,
    "datetime64": datetime,
    "mixed-integer": Union[int, str],
}


def _unwrap_optional(semantic_type: Any) -> tuple[bool, Any]:
    """Split ``Optional[T]`` into ``(True, T)``.

    Unions that are not exactly one type plus ``None`` are returned as-is.
    """
    origin = get_origin(semantic_type)
    if origin is not Union and origin is not types.UnionType:
        return False, semantic_type

    args = get_args(semantic_type)
    non_null = [arg for arg in args if arg is not type(None)]
    if len(non_null) == 1 and len(non_null) < len(args):
        return True, non_null[0]
    return False, semantic_type


def _map_dtype(dtype: Any) -> str:
    if isinstance(dtype, pd.CategoricalDtype):
        return _map_dtype(dtype.categories.dtype)
    if pd.api.types.is_bool_dtype(dtype):
        return "BOOLEAN"
    if pd.api.types.is_integer_dtype(dtype):
        return "INTEGER"
    if pd.api.types.is_float_dtype(dtype):
        return "DOUBLE"
    if pd.api.types.is_datetime64_any_dtype(dtype):
        return "TIMESTAMP"
    return "VARCHAR"


def map_type(semantic_type: Any) -> str:
    """Map a semantic column type to a DuckDB column type.

    Accepts Python types, ``typing`` annotations and numpy/pandas dtypes.
    ``Optional[T]`` maps as ``T``; any other union, nested or unknown type
    degrades to ``VARCHAR``.

    Args:
        semantic_type: Declared element type of a column.

    Returns:
        DuckDB type name.
    """
    try:
        _, base = _unwrap_optional(semantic_type)

        if isinstance(base, (np.dtype, pd.api.extensions.ExtensionDtype)):
            return _map_dtype(base)
        if not isinstance(base, type):
            return "VARCHAR"

        if issubclass(base, (bool, np.bool_)):
            return "BOOLEAN"
        if issubclass(base, numbers.Integral):
            return "INTEGER"
        if issubclass(base, numbers.Real):
            return "DOUBLE"
        if issubclass(base, str):
            return "VARCHAR"
        # datetime is a subclass of date
        if issubclass(base, datetime):
            return "TIMESTAMP"
        if issubclass(base, date):
            return "DATE"
    except TypeError:
        pass
    return "VARCHAR"


def column_type(series: pd.Series) -> Any:
    """Derive the declared element type of a column.

    Typed columns report their dtype. Object columns are inferred from their
    non-missing values and reported as ``Optional[...]`` when any value is
    missing.

    Args:
        series: Column to inspect.

    Returns:
        A dtype, Python type or ``typing`` annotation suitable for ``map_type``.
    """
    dtype = series.dtype
    if dtype != object:
        # numpy and pandas extension dtypes carry their own missing markers
        return dtype

    label = pd.api.types.infer_dtype(series, skipna=True)
    element = _INFERRED_TYPES.get(label, object)
    if series.isna().any():
        return Optional[element]
    return element


def is_missing(value: Any) -> bool:
    """Check for a null/missing marker (None, NA, NaN, NaT)."""
    if value is None:
        return True
    if pd.api.types.is_list_like(value):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def quote_text(text: str) -> str:
    """Single-quote ``text``, doubling embedded single quotes."""
    return "'" + text.replace("'", "''") + "'"


def quote_identifier(name: str) -> str:
    """Double-quote an identifier, doubling embedded double quotes."""
    return '"' + str(name).replace('"', '""') + '"'


def format_value(value: Any) -> str:
    """Format one scalar as a DuckDB literal.

    Only numbers are written unquoted; any other object becomes a quoted
    text literal. Never raises.

    Args:
        value: Cell value.

    Returns:
        SQL literal text.
    """
    try:
        if is_missing(value):
            return NULL
        if isinstance(value, str):
            return quote_text(value)
        if isinstance(value, (bool, np.bool_)):
            return "TRUE" if value else "FALSE"
        if isinstance(value, datetime):
            return quote_text(value.isoformat(sep=" "))
        if isinstance(value, date):
            return quote_text(value.isoformat())
        if isinstance(value, np.datetime64):
            return quote_text(str(pd.Timestamp(value)))
        if pd.api.types.is_list_like(value):
            if isinstance(value, np.ndarray):
                value = value.tolist()
            return quote_text(str(value))
        if isinstance(value, (numbers.Number, np.number)):
            return str(value)
        return quote_text(str(value))
    except Exception:
        return quote_text(repr(value))


def cast_literal(value: Any, engine_type: str) -> str:
    """Format ``value`` as an explicit ``CAST`` to ``engine_type``."""
    if is_missing(value):
        return f"{NULL}::{engine_type}"
    if isinstance(value, datetime):
        text = value.isoformat(sep=" ")
    elif isinstance(value, np.ndarray):
        text = str(value.tolist())
    else:
        text = str(value)
    return f"CAST({quote_text(text)} AS {engine_type})"


def placeholder_literal(engine_type: str) -> str:
    """Type-appropriate default used when a row cannot be represented."""
    return PLACEHOLDERS.get(engine_type, NULL)
