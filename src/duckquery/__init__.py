"""Run SQL against pandas DataFrames and DuckDB database files.

This package provides a single entry point, ``querydf``, with:
- Native or manual (typed, batched) DataFrame registration
- Database file attachment, read-only aware
- Session options, extensions and initialization queries
- Statement pre/postprocessing, profiling and error policies
"""

from duckquery.core.config import ErrorPolicy, SessionConfig, Settings, get_settings
from duckquery.core.exceptions import (
    BackendOpenError,
    ConfigurationError,
    DatabaseConnectionError,
    DuckQueryError,
    ExecutionError,
    ExtensionLoadError,
    RegistrationError,
    SourceUnavailableError,
)
from duckquery.engine.registrar import register_source
from duckquery.session import querydf

__version__ = "0.1.0"

__all__ = [
    "querydf",
    "register_source",
    # Configuration
    "SessionConfig",
    "ErrorPolicy",
    "Settings",
    "get_settings",
    # Errors
    "DuckQueryError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "SourceUnavailableError",
    "BackendOpenError",
    "ExtensionLoadError",
    "RegistrationError",
    "ExecutionError",
]
