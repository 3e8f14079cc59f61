"""Domain objects for check-in records and service replies."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Union
from urllib.parse import parse_qs

from .errors import ServiceError

UNCHECK_ACTION = "uncheck"


@dataclass(frozen=True)
class CheckInRecord:
    """A single identity to record; ``name`` is its de-duplication key."""

    name: Optional[str] = None
    id: Optional[str] = None
    action: Optional[str] = None

    @property
    def key(self) -> str:
        return self.name or self.id or ""

    def to_dict(self) -> Dict[str, str]:
        payload: Dict[str, str] = {}
        if self.name is not None:
            payload["name"] = self.name
        if self.id is not None:
            payload["id"] = self.id
        if self.action is not None:
            payload["action"] = self.action
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CheckInRecord":
        def _field(key: str) -> Optional[str]:
            value = data.get(key)
            return None if value is None else str(value)

        return cls(name=_field("name"), id=_field("id"), action=_field("action"))


def _query_value(params: Dict[str, list], key: str) -> Optional[str]:
    values = params.get(key)
    if not values or not values[0]:
        return None
    return values[0]


def parse_scan(data: str, defaults: Optional[Mapping[str, str]] = None) -> Optional[CheckInRecord]:
    """Decode a scanned string such as ``https://host/?name=Ada&id=42``.

    Only the part after the first ``?`` is read; a string without one is read as
    a bare query. Missing fields fall back to ``defaults``. Returns None when the
    scan carries neither a name nor an id.
    """
    if not data:
        return None
    query = data.split("?", 1)[1] if "?" in data else data
    params = parse_qs(query, keep_blank_values=True)
    name = _query_value(params, "name")
    record_id = _query_value(params, "id")
    if not name and not record_id:
        return None
    defaults = defaults or {}
    return CheckInRecord(
        name=name or defaults.get("name") or None,
        id=record_id or defaults.get("id") or None,
    )


# ---------------------------------------------------------------------------
# Service replies

SOFT_WARNING_CODE = 1


@dataclass(frozen=True)
class Success:
    message: Any


@dataclass(frozen=True)
class SoftWarning:
    message: Any
    code: int = SOFT_WARNING_CODE


@dataclass(frozen=True)
class HardError:
    message: Any
    code: Optional[int] = None


SubmissionResult = Union[Success, SoftWarning, HardError]


def parse_result(payload: Any) -> SubmissionResult:
    """Turn a decoded service reply into one of the result variants.

    ``error`` wins over ``ok``; ``error`` with code 1 is a soft warning. A reply
    that is neither ``ok`` nor flagged as an error is treated as a hard error.
    """
    if not isinstance(payload, Mapping):
        raise ServiceError(f"Unexpected reply from service: {payload!r}")
    message = payload.get("message")
    code = payload.get("code")
    if payload.get("error"):
        if code == SOFT_WARNING_CODE:
            return SoftWarning(message=message, code=code)
        return HardError(message=message, code=code)
    if payload.get("ok") is True:
        return Success(message=message)
    return HardError(message=message, code=code)


# ---------------------------------------------------------------------------
# Repeat suppression


class RecentKeys:
    """Remember keys for ``window`` seconds so repeated scans can be dropped."""

    def __init__(self, window: float = 3.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.window = window
        self._clock = clock
        self._seen: Dict[str, float] = {}

    def _expire(self, now: float) -> None:
        stale = [key for key, at in self._seen.items() if now - at >= self.window]
        for key in stale:
            del self._seen[key]

    def seen(self, key: str) -> bool:
        """Return True if ``key`` was seen within the window; always refresh it."""
        now = self._clock()
        self._expire(now)
        repeated = key in self._seen
        self._seen[key] = now
        return repeated


__all__ = [
    "CheckInRecord",
    "HardError",
    "RecentKeys",
    "SOFT_WARNING_CODE",
    "SoftWarning",
    "SubmissionResult",
    "Success",
    "UNCHECK_ACTION",
    "parse_result",
    "parse_scan",
]
