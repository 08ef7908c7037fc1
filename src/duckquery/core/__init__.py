"""Core utilities: configuration, logging, exceptions."""

from duckquery.core.config import (
    MEMORY_DATABASE,
    ErrorPolicy,
    SessionConfig,
    Settings,
    get_settings,
)
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
from duckquery.core.logging import configure_logging, ensure_logging, get_logger

__all__ = [
    "MEMORY_DATABASE",
    "ErrorPolicy",
    "SessionConfig",
    "Settings",
    "get_settings",
    "configure_logging",
    "ensure_logging",
    "get_logger",
    "DuckQueryError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "SourceUnavailableError",
    "BackendOpenError",
    "ExtensionLoadError",
    "RegistrationError",
    "ExecutionError",
]
