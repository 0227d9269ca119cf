"""Exception hierarchy shared by the dispatcher and its collaborators."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    READ = "read"
    VALIDATION = "validation"
    TRANSPORT = "transport"
    STATUS = "status"
    PERSISTENCE = "persistence"


class PosterError(Exception):
    """Base class for every error raised by payload_poster."""


# ---------------------------------------------------------------------------
# Fatal setup errors
# ---------------------------------------------------------------------------


class ConfigError(PosterError):
    """Raised when settings are missing or out of range."""


class InputDirectoryError(PosterError):
    """Raised when the requests directory does not exist."""


class OutputDirectoryError(PosterError):
    """Raised when the responses directory cannot be created."""


# ---------------------------------------------------------------------------
# Task-scoped errors
# ---------------------------------------------------------------------------


class TaskError(PosterError):
    """Failure confined to a single task; captured into its Result."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class ReadError(TaskError):
    kind = ErrorKind.READ


class ValidationError(TaskError):
    kind = ErrorKind.VALIDATION


class TransportError(TaskError):
    kind = ErrorKind.TRANSPORT


class StatusError(TaskError):
    """The endpoint replied, but outside the 2xx range.

    The reply body is kept so callers can inspect what the server rejected.
    """

    kind = ErrorKind.STATUS

    def __init__(self, status_code: int, body: bytes) -> None:
        super().__init__(f"server returned status {status_code}")
        self.status_code = status_code
        self.body = body


class PersistenceError(TaskError):
    kind = ErrorKind.PERSISTENCE


__all__ = [
    "ErrorKind",
    "PosterError",
    "ConfigError",
    "InputDirectoryError",
    "OutputDirectoryError",
    "TaskError",
    "ReadError",
    "ValidationError",
    "TransportError",
    "StatusError",
    "PersistenceError",
]
