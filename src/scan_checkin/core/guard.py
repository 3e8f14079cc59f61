"""Time bound and transport-failure classification for a single submission."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from ..utils.logger import get_logger
from .errors import RETRYABLE_MESSAGES, SubmissionTimeout, failure_message
from .fp import curry

T = TypeVar("T")

DEFAULT_TIMEOUT_MS = 10_000

_log = get_logger("guard")


@dataclass(frozen=True)
class NetworkFailure:
    """Marker returned in place of a reply when the transport failed."""

    reason: str


def _discard_late_result(task: "asyncio.Future[Any]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        _log.debug("Abandoned submission failed after timeout: %s", exc)
    else:
        _log.debug("Abandoned submission completed after timeout; reply ignored")


async def _with_timeout(duration_ms: float, awaitable: Awaitable[T]) -> T:
    task = asyncio.ensure_future(awaitable)
    done, _ = await asyncio.wait({task}, timeout=duration_ms / 1000)
    if task in done:
        return task.result()
    # Not cancelled: the call may still land server-side, its reply is dropped.
    task.add_done_callback(_discard_late_result)
    raise SubmissionTimeout()


async def _with_network_error_guard(recovery: Callable[[BaseException], T], awaitable: Awaitable[T]) -> T:
    try:
        return await awaitable
    except Exception as exc:
        if failure_message(exc) not in RETRYABLE_MESSAGES:
            raise
        _log.debug("Transport failure suppressed: %s", failure_message(exc))
        return recovery(exc)


with_timeout = curry(_with_timeout)
with_network_error_guard = curry(_with_network_error_guard)


__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "NetworkFailure",
    "with_network_error_guard",
    "with_timeout",
]
