"""RowSource exception hierarchy.

Every failure raised by the mapping layer is a ``RowSourceError``. The
dispatcher annotates errors with the batch position (``index``), the
dispatch stage that failed (``stage``) and the results of intents that
completed before the failure (``completed``), then re-raises them
unchanged. Errors that are not RowSource errors (for example
``asyncio.CancelledError``) are never caught.
"""

from __future__ import annotations

from typing import Any


class RowSourceError(Exception):
    """Base exception for all RowSource errors."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        record_type: str | None = None,
        record_id: Any = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.record_type = record_type
        self.record_id = record_id
        self.index: int | None = None
        self.stage: str | None = None
        self.completed: list[Any] = []


# --- Configuration ---


class ConfigurationError(RowSourceError):
    """Raised when settings are inconsistent with the record schema."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


class UnknownRelationshipError(ConfigurationError):
    """Raised when a relationship is neither configured nor in the schema."""

    def __init__(self, record_type: str, relationship: str) -> None:
        self.relationship = relationship
        super().__init__([f"unknown relationship '{relationship}' on type '{record_type}'"])
        self.record_type = record_type


# --- Dispatch ---


class UnsupportedOperationError(RowSourceError):
    """Raised for an intent the dispatcher does not know how to route."""

    def __init__(self, intent: Any) -> None:
        self.intent = intent
        super().__init__(f"Unsupported operation: {type(intent).__name__}")


# --- Access control ---


class MissingSubjectError(RowSourceError):
    """Raised when an access-controlled type is used with no current subject."""

    def __init__(self, record_type: str, *, operation: str | None = None) -> None:
        super().__init__(
            f"A subject identifier is required for access-controlled type '{record_type}'",
            operation=operation,
            record_type=record_type,
        )


# --- Backend ---


class BackendRequestError(RowSourceError):
    """Wraps an error reported by the backend collaborator."""

    def __init__(
        self,
        operation: str,
        table: str,
        code: str | None,
        message: str,
        *,
        record_type: str | None = None,
        record_id: Any = None,
    ) -> None:
        self.table = table
        self.code = code
        self.backend_message = message
        super().__init__(
            f"Backend {operation} error on '{table}' [{code}]: {message}",
            operation=operation,
            record_type=record_type,
            record_id=record_id,
        )


# --- Mapping ---


class TransformError(RowSourceError):
    """Raised when a serialize/deserialize hook fails for a field."""

    def __init__(
        self,
        record_type: str,
        field: str,
        direction: str,
        *,
        record_id: Any = None,
    ) -> None:
        self.field = field
        self.direction = direction
        super().__init__(
            f"Cannot {direction} '{field}' of type '{record_type}'",
            operation=direction,
            record_type=record_type,
            record_id=record_id,
        )
