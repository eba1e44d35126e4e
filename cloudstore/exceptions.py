"""Error taxonomy shared by every layer above the transport boundary.

Transport failures are translated once into a :class:`StorageError` carrying a
:class:`StatusCode`. Retry decorators only inspect the code to decide whether
an error is transient or permanent.
"""

from __future__ import annotations

from enum import Enum


class StatusCode(str, Enum):
    """Canonical status codes for remote operations."""

    OK = "OK"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    FAILED_PRECONDITION = "FAILED_PRECONDITION"
    ABORTED = "ABORTED"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    UNIMPLEMENTED = "UNIMPLEMENTED"
    INTERNAL = "INTERNAL"
    UNAVAILABLE = "UNAVAILABLE"
    DATA_LOSS = "DATA_LOSS"


TRANSIENT_STATUS_CODES = frozenset({
    StatusCode.DEADLINE_EXCEEDED,
    StatusCode.INTERNAL,
    StatusCode.RESOURCE_EXHAUSTED,
    StatusCode.UNAVAILABLE,
})


class StorageError(Exception):
    """Base error for every failed storage operation."""

    def __init__(self, code: StatusCode, message: str = ""):
        """Initialize StorageError with a status code and message.

        Args:
            code: Canonical status code classifying the failure.
            message: Human readable description of the failure.
        """
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.message} [{self.code.value}]"

    def __repr__(self) -> str:
        return f"StorageError(code={self.code.value}, message={self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StorageError):
            return NotImplemented
        return self.code == other.code and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.code, self.message))


def is_permanent_failure(error: StorageError) -> bool:
    """Return True unless the error is one of the transient status codes."""
    return error.code not in TRANSIENT_STATUS_CODES


def exhausted_before_first_attempt() -> StorageError:
    """Error reported when a policy expires before any attempt was made."""
    return StorageError(
        StatusCode.DEADLINE_EXCEEDED,
        "Retry policy exhausted before first attempt was made.",
    )


def permanent_error(operation: str, error: StorageError) -> StorageError:
    """Compose the error returned when a non-retryable failure stops a loop."""
    return StorageError(
        error.code, f"Permanent error in {operation}: {error.message}"
    )


def exhausted_error(operation: str, error: StorageError) -> StorageError:
    """Compose the error returned when the retry budget runs out."""
    return StorageError(
        error.code, f"Retry policy exhausted in {operation}: {error.message}"
    )
