"""Custom exceptions for the analytics layer."""

from typing import Any


class AnalyticsError(Exception):
    """Base exception for analytics errors."""

    pass


class InvalidInputError(AnalyticsError, TypeError):
    """Argument has the wrong type or shape (e.g. a dict where a list is required)."""

    pass


class ConfigError(AnalyticsError):
    """Invalid or unreadable analytics configuration."""

    pass


class IngestionError(AnalyticsError):
    """Base exception for record ingestion errors."""

    pass


class RegistryLoadError(IngestionError):
    """Failed to load the source registry."""

    pass


class UnknownSourceError(IngestionError):
    """Source name not present in the registry."""

    def __init__(self, source: str, available_sources: list[str]):
        self.source = source
        self.available_sources = available_sources
        super().__init__(
            f"Unknown source: {source!r}. Available: {available_sources}"
        )


class RecordValidationError(IngestionError):
    """Record validation failed against a pydantic row model."""

    def __init__(self, errors: list[dict[str, Any]], row_count: int):
        self.errors = errors
        self.row_count = row_count
        super().__init__(
            f"Validation failed for {len(errors)} of {row_count} rows. "
            f"First error: {errors[0] if errors else 'N/A'}"
        )
