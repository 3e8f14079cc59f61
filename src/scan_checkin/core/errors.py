"""Exception types raised by the check-in pipeline."""

from __future__ import annotations

from typing import Optional

TIMEOUT_MESSAGE = "Timeout"
NETWORK_FAILURE_MESSAGE = "Network request failed"

# Failure messages the submission guard converts into a retry signal.
RETRYABLE_MESSAGES = frozenset({TIMEOUT_MESSAGE, NETWORK_FAILURE_MESSAGE})


class CheckInError(Exception):
    """Base class for pipeline errors."""


class TransportError(CheckInError):
    """The request never produced a usable reply from the service."""

    def __init__(self, message: str = NETWORK_FAILURE_MESSAGE) -> None:
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""


class SubmissionTimeout(TransportError):
    """The time bound elapsed before the service replied."""

    def __init__(self) -> None:
        super().__init__(TIMEOUT_MESSAGE)


class ServiceError(CheckInError):
    """The service replied with an unusable status or body."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class StorageError(CheckInError):
    """The pending queue could not be read from or written to storage."""


def failure_message(exc: BaseException) -> str:
    """Return the message the guard matches against ``RETRYABLE_MESSAGES``."""
    if isinstance(exc, TransportError):
        return exc.message
    return str(exc.args[0]) if exc.args else ""


__all__ = [
    "CheckInError",
    "NETWORK_FAILURE_MESSAGE",
    "RETRYABLE_MESSAGES",
    "ServiceError",
    "StorageError",
    "SubmissionTimeout",
    "TIMEOUT_MESSAGE",
    "TransportError",
    "failure_message",
]
