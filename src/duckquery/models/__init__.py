"""Source models accepted by ``querydf``."""

from duckquery.models.sources import (
    DatabaseSource,
    FrameSource,
    Source,
    resolve_source,
    validate_source_name,
)

__all__ = [
    "DatabaseSource",
    "FrameSource",
    "Source",
    "resolve_source",
    "validate_source_name",
]
