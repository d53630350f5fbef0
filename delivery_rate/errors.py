"""
Custom error classes for the delivery-change rate engine.

Hierarchy:
    DeliveryRateError
    └── DataError
        ├── ConfigError
        ├── SchemaValidationError
        └── DataFetchError
"""

from __future__ import annotations

from typing import Any


class DeliveryRateError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, code: str = "UNKNOWN", details: dict[str, Any] | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(f"[{code}] {message}")


class DataError(DeliveryRateError):
    """Base class for data processing errors."""


class ConfigError(DataError):
    """Invalid engine configuration value."""

    def __init__(self, message: str, setting: str | None = None):
        super().__init__(message, code="CONFIG_ERROR", details={"setting": setting})


class SchemaValidationError(DataError):
    """Input doesn't match the expected shape."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, code="SCHEMA_INVALID", details={"field": field})


class DataFetchError(DataError):
    """Failed to fetch or load records from a source."""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message, code="DATA_FETCH_FAILED", details={"source": source})
