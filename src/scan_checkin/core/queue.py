"""Durable queue of check-in records that still need to reach the service."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from ..utils.logger import get_logger
from .errors import StorageError
from .records import CheckInRecord

DEFAULT_QUEUE_KEY = "scanQueue"

_log = get_logger("queue")


class KeyValueStorage(Protocol):
    """String storage addressed by key."""

    def read(self, key: str) -> Optional[str]:
        """Return the stored text, or None when the key is absent."""

    def write(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``; raise StorageError on failure."""


class MemoryStorage:
    """Process-local storage, used for ephemeral runs and tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def write(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStorage:
    """One file per key under ``directory``; writes replace the file atomically."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Unable to read {path}: {exc}") from exc

    def write(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Unable to write {path}: {exc}") from exc


class PendingQueue:
    """Ordered pending records, cached in memory and mirrored to storage.

    The first :meth:`get` reads storage; later calls return the cache. Every
    :meth:`set` replaces the cache and writes storage before returning, so the
    two never diverge as long as callers do not mutate the list from ``get`` in
    place.
    """

    def __init__(self, storage: KeyValueStorage, key: str = DEFAULT_QUEUE_KEY) -> None:
        self.storage = storage
        self.key = key
        self._records: Optional[List[CheckInRecord]] = None

    def get(self) -> List[CheckInRecord]:
        if self._records is None:
            self._records = self._load()
        return self._records

    def set(self, records: Sequence[CheckInRecord]) -> "PendingQueue":
        records = list(records)
        payload = json.dumps([record.to_dict() for record in records], ensure_ascii=False)
        self.storage.write(self.key, payload)
        self._records = records
        _log.debug("Persisted %d pending record(s) under %s", len(records), self.key)
        return self

    def __len__(self) -> int:
        return len(self.get())

    def _load(self) -> List[CheckInRecord]:
        raw = self.storage.read(self.key)
        if not raw or not raw.strip():
            return []
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Pending queue '{self.key}' is not valid JSON: {exc}") from exc
        if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
            raise StorageError(f"Pending queue '{self.key}' must be a list of records")
        records = [CheckInRecord.from_dict(item) for item in payload]
        _log.debug("Loaded %d pending record(s) from %s", len(records), self.key)
        return records


__all__ = [
    "DEFAULT_QUEUE_KEY",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "PendingQueue",
]
