"""Custom exceptions for duckquery."""

from typing import Any


class DuckQueryError(Exception):
    """Base exception for all duckquery errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(DuckQueryError):
    """Raised when session configuration is invalid, before any connection work."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details={"config_key": config_key},
        )
        self.config_key = config_key


class DatabaseConnectionError(DuckQueryError):
    """Raised when a backing store cannot be opened."""

    def __init__(
        self,
        message: str,
        location: str,
        error_code: str = "CONNECTION_ERROR",
        original_error: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details={"location": location, "original_error": original_error},
        )
        self.location = location
        self.original_error = original_error


class SourceUnavailableError(DatabaseConnectionError):
    """Raised when a read-only store does not exist."""

    def __init__(self, location: str) -> None:
        super().__init__(
            message=f"Database file not found: {location}",
            location=location,
            error_code="SOURCE_UNAVAILABLE",
        )


class BackendOpenError(DatabaseConnectionError):
    """Raised when the engine refuses to open a store (corrupt or unreadable)."""

    def __init__(self, location: str, original_error: str | None = None) -> None:
        super().__init__(
            message=f"Failed to open database: {location}",
            location=location,
            error_code="BACKEND_OPEN_ERROR",
            original_error=original_error,
        )


class ExtensionLoadError(DuckQueryError):
    """Raised when an engine extension cannot be installed or loaded."""

    def __init__(
        self,
        extension: str,
        original_error: str | None = None,
    ) -> None:
        super().__init__(
            message=f"Failed to install or load extension: {extension}",
            error_code="EXTENSION_LOAD_ERROR",
            details={"extension": extension, "original_error": original_error},
        )
        self.extension = extension
        self.original_error = original_error


class RegistrationError(DuckQueryError):
    """Raised when a named source cannot be made queryable."""

    def __init__(
        self,
        message: str,
        name: str,
        sql: str | None = None,
        original_error: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="REGISTRATION_ERROR",
            details={"name": name, "sql": sql, "original_error": original_error},
        )
        self.name = name
        self.sql = sql
        self.original_error = original_error


class ExecutionError(DuckQueryError):
    """Raised when statement execution fails under the ``fail`` policy."""

    def __init__(
        self,
        message: str,
        sql: str,
        original_error: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="EXECUTION_ERROR",
            details={"sql": sql, "original_error": original_error},
        )
        self.sql = sql
        self.original_error = original_error

    @property
    def cause(self) -> BaseException | None:
        """Underlying error that aborted the statement."""
        return self.__cause__
