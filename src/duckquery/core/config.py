"""Session configuration and environment-backed defaults.

``Settings`` carries process-wide defaults loaded from the environment.
``SessionConfig`` is the immutable value built once per ``querydf`` call and
threaded explicitly through the connector, registrar and query runner.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from enum import StrEnum
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Literal

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from duckquery.core.exceptions import ConfigurationError

MEMORY_DATABASE = ":memory:"
DEFAULT_BATCH_SIZE = 1000

Preprocessor = Callable[[str], str]
Postprocessor = Callable[[pd.DataFrame], pd.DataFrame]


class ErrorPolicy(StrEnum):
    """What a failed statement turns into."""

    FAIL = "fail"  # raise
    RETURN_EMPTY = "return_empty"  # empty frame, silently
    LOG = "log"  # empty frame, error logged


class Settings(BaseSettings):
    """Process-wide defaults loaded from ``DUCKQUERY_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DUCKQUERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    DEFAULT_BATCH_SIZE: int | None = Field(
        default=None,
        ge=1,
        description="Rows per round trip on the manual registration path",
    )
    DEFAULT_MEMORY_LIMIT: str | None = Field(
        default=None,
        description="DuckDB memory_limit applied when a call does not set one",
    )
    DEFAULT_THREADS: int | None = Field(default=None, ge=1, le=256)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    def option_defaults(self) -> dict[str, Any]:
        """Session options seeded from the environment."""
        defaults: dict[str, Any] = {}
        if self.DEFAULT_MEMORY_LIMIT is not None:
            defaults["memory_limit"] = self.DEFAULT_MEMORY_LIMIT
        if self.DEFAULT_THREADS is not None:
            defaults["threads"] = self.DEFAULT_THREADS
        if self.DEFAULT_BATCH_SIZE is not None:
            defaults["batch_size"] = self.DEFAULT_BATCH_SIZE
        return defaults


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def _positive_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"option '{key}' must be a positive integer, got {value!r}")
    return value


class SessionConfig(BaseModel):
    """Immutable configuration for one top-level call.

    Attributes:
        init_queries: Statements run once after the connection is configured.
        options: Ordered, read-only engine/session options. ``memory_limit``,
            ``threads``, ``extensions``, ``batch_size`` and
            ``force_manual_registration`` are recognised; any other key is
            tried as a generic ``SET``.
        verbose: Emit progress and recovery lines.
        profile: Log wall-clock time per statement and per call.
        preprocessors: Statement-text transforms applied in order.
        postprocessors: Result-frame transforms applied in order.
        on_error: Statement error policy.
        readonly: Open file-backed stores and attachments read-only.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    init_queries: tuple[str, ...] = ()
    options: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)
    verbose: bool = False
    profile: bool = False
    preprocessors: tuple[Preprocessor, ...] = ()
    postprocessors: tuple[Postprocessor, ...] = ()
    on_error: ErrorPolicy = ErrorPolicy.FAIL
    readonly: bool = False

    @field_validator("init_queries", mode="before")
    @classmethod
    def parse_init_queries(cls, v: str | Sequence[str] | None) -> Sequence[str]:
        """Accept a single statement or a sequence of statements."""
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,)
        return tuple(v)

    @field_validator("options", mode="before")
    @classmethod
    def validate_options(cls, v: Mapping[str, Any] | None) -> dict[str, Any]:
        """Copy the options and check the values of recognised keys."""
        if v is None:
            return {}
        if not isinstance(v, Mapping):
            raise ValueError("options must be a mapping")

        options = {str(key): value for key, value in v.items()}

        for key in ("threads", "batch_size"):
            if key in options:
                _positive_int(key, options[key])

        if "memory_limit" in options and not isinstance(options["memory_limit"], str):
            raise ValueError("option 'memory_limit' must be a string such as '1GB'")

        if "extensions" in options:
            extensions = options["extensions"]
            if isinstance(extensions, str):
                pass
            elif isinstance(extensions, Sequence) and all(
                isinstance(ext, str) for ext in extensions
            ):
                options["extensions"] = tuple(extensions)
            else:
                raise ValueError("option 'extensions' must be a string or a list of strings")

        if "force_manual_registration" in options and not isinstance(
            options["force_manual_registration"], bool
        ):
            raise ValueError("option 'force_manual_registration' must be a boolean")

        return options

    @field_validator("options")
    @classmethod
    def freeze_options(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        """Expose the options as a read-only view."""
        return MappingProxyType(dict(v))

    @classmethod
    def build(
        cls,
        settings: Settings | None = None,
        **kwargs: Any,
    ) -> SessionConfig:
        """Build a configuration, raising ``ConfigurationError`` on invalid input.

        Args:
            settings: Optional environment defaults. Options the caller did not
                supply are appended from it, after the caller's own keys.
            **kwargs: Field values.

        Returns:
            SessionConfig: Validated, frozen configuration.

        Raises:
            ConfigurationError: If any field fails validation.
        """
        if settings is not None:
            caller_options = kwargs.get("options") or {}
            if isinstance(caller_options, Mapping):
                options = dict(caller_options)
                for key, value in settings.option_defaults().items():
                    options.setdefault(key, value)
                kwargs["options"] = options

        try:
            return cls(**kwargs)
        except ValidationError as e:
            first = e.errors()[0]
            config_key = ".".join(str(part) for part in first["loc"]) or None
            raise ConfigurationError(
                message=f"Invalid configuration: {first['msg']}",
                config_key=config_key,
            ) from e

    @property
    def batch_size(self) -> int:
        """Rows per round trip on the manual registration path."""
        return self.options.get("batch_size", DEFAULT_BATCH_SIZE)

    @property
    def force_manual_registration(self) -> bool:
        """Whether the native registration path is skipped."""
        return bool(self.options.get("force_manual_registration", False))
