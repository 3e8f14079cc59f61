"""Check-in submission pipeline with a durable retry queue."""

from .core.checkin import CheckInPipeline, RecordOutcome, surviving_records
from .core.queue import JsonFileStorage, MemoryStorage, PendingQueue
from .core.records import CheckInRecord, parse_scan
from .core.reporter import Notice, Severity

__all__ = [
    "CheckInPipeline",
    "CheckInRecord",
    "JsonFileStorage",
    "MemoryStorage",
    "Notice",
    "PendingQueue",
    "RecordOutcome",
    "Severity",
    "parse_scan",
    "surviving_records",
]

__version__ = "0.1.0"
