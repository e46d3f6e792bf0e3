"""Custom exception types for the Zoya assistant.

Error messages follow the same shape everywhere:
- What failed (specific operation or component)
- Why it failed (the specific condition)
- How to fix it (actionable guidance, where there is any)

Classification failures never reach the caller of the command pipeline;
storage and validation failures always do.
"""

from __future__ import annotations

from typing import Any


class ZoyaError(Exception):
    """Base exception for all Zoya assistant errors."""

    pass


class ConfigValidationError(ZoyaError):
    """Raised when config.yaml fails Pydantic validation.

    Includes specific field errors with actionable messages.
    """

    pass


class ConfigLoadError(ZoyaError):
    """Raised when config.yaml cannot be loaded (file not found, YAML parse error)."""

    pass


class ClientInputError(ZoyaError):
    """Raised when a command submission is empty or not a string.

    Surfaced as HTTP 400 before the classifier is invoked. No history
    record is written for rejected input.
    """

    pass


class EntityValidationError(ZoyaError):
    """Raised when an entity payload does not match its insert/update schema.

    Attributes:
        entity: Entity kind being validated ('task', 'email', ...)
        errors: One human-readable line per field violation
    """

    def __init__(self, message: str, entity: str, errors: list[str] | None = None):
        super().__init__(message)
        self.entity = entity
        self.errors = errors or []


class EntityNotFoundError(ZoyaError):
    """Raised when an update targets an entity id that does not exist."""

    def __init__(self, message: str, entity: str, entity_id: str):
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class StorageUnavailableError(ZoyaError):
    """Raised when the backing store cannot service a call.

    Covers pool exhaustion, connectivity loss and SQL failures in the
    durable adapter. The in-memory adapter never raises it.

    Attributes:
        operation: Store operation that failed (e.g. 'create_task')
    """

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class ClassifierError(ZoyaError):
    """Raised inside the classifier when the provider call or its output fails.

    Never escapes CommandClassifier.classify(); it is converted into a
    fallback intent there.

    Attributes:
        status_code: HTTP status from the provider, if any
        trips_breaker: Whether this failure marks the provider unavailable
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        trips_breaker: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.trips_breaker = trips_breaker


def format_validation_errors(errors: list[dict[str, Any]]) -> list[str]:
    """Format Pydantic error dicts into 'field: message' lines."""
    lines = []
    for err in errors:
        loc = ".".join(str(part) for part in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        lines.append(f"{loc}: {msg}" if loc else msg)
    return lines
