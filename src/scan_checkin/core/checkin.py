"""Check-in pipeline: submit pending records and keep the ones that must be retried.

Each record goes through ``then(classify) . guard . timeout . send``. A reply
from the service, whatever it says, ends the record's life in the queue; only a
transport failure (timeout or lost connection) keeps it for the next pass. An
unusable reply (``ServiceError``) is reported and dropped like a rejection, so
one bad record cannot stall the records queued behind it.
"""

from __future__ import annotations

import inspect
import json
from dataclasses import dataclass
from typing import Any, Awaitable, Iterable, List, Mapping, Optional, Protocol

from ..utils.logger import LayeredAdapter, get_logger
from .errors import ServiceError, failure_message
from .fp import compose, list_combine, reduce_async, then, trace, transduce, transduce_filter, transduce_map
from .guard import DEFAULT_TIMEOUT_MS, NetworkFailure, with_network_error_guard, with_timeout
from .queue import PendingQueue
from .records import UNCHECK_ACTION, CheckInRecord, HardError, RecentKeys, parse_result
from .reporter import EXTENDED_DURATION_MS, Notice, Notifier, Severity, network_failure, report


class RecordSender(Protocol):
    """Deliver one record to the recording service and return its decoded reply."""

    def __call__(
        self, record: CheckInRecord, params: Optional[Mapping[str, str]] = None
    ) -> Awaitable[Any]:
        ...


@dataclass(frozen=True)
class RecordOutcome:
    """What happened to one record during a pass."""

    record: CheckInRecord
    retained: bool
    notice: Notice


def _is_retained(outcome: RecordOutcome) -> bool:
    return outcome.retained


def _record_of(outcome: RecordOutcome) -> CheckInRecord:
    return outcome.record


_retained_records = compose(transduce_filter(_is_retained), transduce_map(_record_of))


def surviving_records(outcomes: Iterable[RecordOutcome]) -> List[CheckInRecord]:
    """Records that must stay queued, in their queued order."""
    return transduce(_retained_records, list_combine, [], list(outcomes))


class CheckInPipeline:
    """Coordinate submissions, notices and the survivor list for a queue pass."""

    def __init__(
        self,
        send: RecordSender,
        notify: Notifier,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        extended_ms: int = EXTENDED_DURATION_MS,
        processing: Optional[Notice] = None,
        logger: Optional[LayeredAdapter] = None,
    ) -> None:
        self._send = send
        self._notify = notify
        self.timeout_ms = timeout_ms
        self.extended_ms = extended_ms
        self.processing = processing
        self._logger = logger or get_logger("checkin")

    async def _emit(self, notice: Notice) -> None:
        result = self._notify(notice)
        if inspect.isawaitable(result):
            await result

    def _submit(self, record: CheckInRecord, params: Optional[Mapping[str, str]] = None) -> Awaitable[Any]:
        return with_timeout(self.timeout_ms, self._send(record, params))

    def _on_transport_failure(self, exc: BaseException) -> NetworkFailure:
        return NetworkFailure(reason=failure_message(exc))

    def _classify(self, record: CheckInRecord, reply: Any) -> RecordOutcome:
        if isinstance(reply, NetworkFailure):
            return RecordOutcome(record, True, network_failure(extended_ms=self.extended_ms))
        return RecordOutcome(record, False, report(parse_result(reply), extended_ms=self.extended_ms))

    def _unusable_reply(self, record: CheckInRecord, exc: ServiceError) -> RecordOutcome:
        result = HardError(str(exc), exc.status)
        return RecordOutcome(record, False, report(result, extended_ms=self.extended_ms))

    async def attempt(self, record: CheckInRecord) -> RecordOutcome:
        """Submit one record and emit its notice before returning."""
        submit = compose(
            then(lambda reply: self._classify(record, reply)),
            with_network_error_guard(self._on_transport_failure),
            self._submit,
        )
        try:
            outcome = await submit(record)
        except ServiceError as exc:
            self._logger.error("Dropped %s after an unusable reply: %s", record.key, exc)
            outcome = self._unusable_reply(record, exc)
        else:
            if outcome.retained:
                self._logger.warning("Kept %s in the queue: %s", record.key, outcome.notice.message)
            else:
                self._logger.info("Submitted %s (%s)", record.key, outcome.notice.severity.value)
        await self._emit(outcome.notice)
        return outcome

    async def run(
        self,
        records: Iterable[CheckInRecord],
        completed: Optional[List[RecordOutcome]] = None,
    ) -> List[RecordOutcome]:
        """Attempt every record in order, one at a time.

        When ``completed`` is given, each outcome is appended to it as soon as it
        is known, so a caller can tell how far the pass got if it raises.
        """

        async def collect(outcomes: List[RecordOutcome], record: CheckInRecord) -> List[RecordOutcome]:
            outcome = await self.attempt(record)
            if completed is not None:
                completed.append(outcome)
            return list_combine(outcomes, outcome)

        return await reduce_async(trace(collect), [], list(records))

    async def check_in(self, records: Iterable[CheckInRecord]) -> List[CheckInRecord]:
        """Submit ``records`` and return the ones that still need sending."""
        return surviving_records(await self.run(records))

    async def _drain(self, pending: List[CheckInRecord], queue: PendingQueue) -> PendingQueue:
        if self.processing is not None:
            await self._emit(self.processing)
        completed: List[RecordOutcome] = []
        try:
            outcomes = await self.run(pending, completed)
        except Exception:
            # Drop only the records this pass already resolved.
            queue.set([*surviving_records(completed), *pending[len(completed):]])
            raise
        return queue.set(surviving_records(outcomes))

    async def check_in_and_save(self, record: CheckInRecord, queue: PendingQueue) -> PendingQueue:
        """Queue ``record`` ahead of the pending ones, then run a pass over all of them.

        The record is persisted before any network call. If the pass is cut short
        by an unexpected error, the queue is rewritten without the records that
        were already delivered and the error is re-raised.
        """
        pending = [record, *queue.get()]
        queue.set(pending)
        return await self._drain(pending, queue)

    async def retry_pending(self, queue: PendingQueue) -> PendingQueue:
        """Run a pass over whatever is already queued."""
        pending = list(queue.get())
        if not pending:
            self._logger.info("No pending check-ins")
            return queue
        self._logger.info("Retrying %d pending check-in(s)", len(pending))
        return await self._drain(pending, queue)

    async def check_in_once(
        self, record: CheckInRecord, queue: PendingQueue, recent: RecentKeys
    ) -> Optional[PendingQueue]:
        """Like :meth:`check_in_and_save`, but refuse a repeat within the debounce window."""
        if recent.seen(record.key):
            await self._emit(Notice(f"{record.key} has already been checked in", Severity.INFO))
            return None
        return await self.check_in_and_save(record, queue)

    async def check_out(self, record: CheckInRecord) -> Notice:
        """Send an ``uncheck`` for ``record``; never queued."""
        submit = with_network_error_guard(self._on_transport_failure)
        reply = await submit(self._submit(record, {"action": UNCHECK_ACTION}))
        if isinstance(reply, NetworkFailure):
            notice = network_failure(extended_ms=self.extended_ms)
        else:
            ok = isinstance(reply, Mapping) and reply.get("ok") is True
            notice = Notice(
                json.dumps(reply, ensure_ascii=False),
                Severity.SUCCESS if ok else Severity.DANGER,
            )
        self._logger.info("Check-out for %s: %s", record.key, notice.severity.value)
        await self._emit(notice)
        return notice


__all__ = [
    "CheckInPipeline",
    "RecordOutcome",
    "RecordSender",
    "surviving_records",
]
