"""
Barndo Estimator - Domain Exceptions

Custom exception hierarchy for structured error handling.
"""
from typing import Any


class EstimatorError(Exception):
    """Base exception for all estimator errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(EstimatorError):
    """Validation error (e.g., invalid margin or dimension input)."""

    def __init__(self, message: str, field_name: str | None = None, **kwargs):
        super().__init__(message, {"field_name": field_name, **kwargs})


class GeometryError(EstimatorError):
    """Geometry cannot be resolved for a structure."""

    def __init__(self, message: str, structure: str | None = None, **kwargs):
        super().__init__(message, {"structure": structure, **kwargs})


class CatalogError(EstimatorError):
    """Pricing catalog load error."""

    def __init__(self, message: str, source: str | None = None, **kwargs):
        super().__init__(message, {"source": source, **kwargs})


class CatalogLookupError(CatalogError):
    """No catalog item matches a strict lookup."""

    pass


class DatabaseError(EstimatorError):
    """Database operation error."""

    def __init__(self, message: str, query: str | None = None, **kwargs):
        super().__init__(message, {"query": query, **kwargs})


class ConnectionError(DatabaseError):
    """Database connection error."""

    pass


class QueryError(DatabaseError):
    """Database query execution error."""

    pass


class StorageError(EstimatorError):
    """Estimate storage error."""

    def __init__(self, message: str, entity_type: str | None = None, entity_id: int | None = None, **kwargs):
        super().__init__(message, {"entity_type": entity_type, "entity_id": entity_id, **kwargs})


class NotFoundError(StorageError):
    """Entity not found error."""

    pass


class PersistenceError(EstimatorError):
    """Save/update/delete/list failure surfaced to the session owner."""

    def __init__(self, message: str, operation: str | None = None, **kwargs):
        super().__init__(message, {"operation": operation, **kwargs})


class InvalidTransitionError(EstimatorError):
    """Illegal estimate lifecycle transition."""

    def __init__(self, message: str, from_state: str | None = None, to_state: str | None = None, **kwargs):
        super().__init__(message, {"from_state": from_state, "to_state": to_state, **kwargs})


class ConfigurationError(EstimatorError):
    """Configuration error."""

    def __init__(self, message: str, config_key: str | None = None, **kwargs):
        super().__init__(message, {"config_key": config_key, **kwargs})
