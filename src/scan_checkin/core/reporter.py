"""Translate submission outcomes into user-facing notices."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from .records import HardError, SoftWarning, SubmissionResult, Success

NETWORK_FAILURE_NOTICE = "A network error occurred"
ERROR_PREFIX = "An error occurred: "
EXTENDED_DURATION_MS = 4000


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class Notice:
    message: str
    severity: Severity
    duration_ms: Optional[int] = None


Notifier = Callable[[Notice], Any]


def _text(message: Any) -> str:
    return "" if message is None else str(message)


def report(result: SubmissionResult, *, extended_ms: int = EXTENDED_DURATION_MS) -> Notice:
    if isinstance(result, Success):
        return Notice(_text(result.message), Severity.SUCCESS)
    if isinstance(result, SoftWarning):
        return Notice(_text(result.message), Severity.WARNING, extended_ms)
    if isinstance(result, HardError):
        return Notice(ERROR_PREFIX + json.dumps(result.message, ensure_ascii=False), Severity.DANGER)
    raise TypeError(f"not a submission result: {result!r}")


def network_failure(*, extended_ms: int = EXTENDED_DURATION_MS) -> Notice:
    return Notice(NETWORK_FAILURE_NOTICE, Severity.WARNING, extended_ms)


__all__ = [
    "ERROR_PREFIX",
    "EXTENDED_DURATION_MS",
    "NETWORK_FAILURE_NOTICE",
    "Notice",
    "Notifier",
    "Severity",
    "network_failure",
    "report",
]
