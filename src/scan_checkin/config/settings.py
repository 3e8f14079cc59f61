"""Runtime settings read from the environment (and ``.env``)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ..core.guard import DEFAULT_TIMEOUT_MS
from ..core.queue import DEFAULT_QUEUE_KEY, JsonFileStorage, PendingQueue
from ..core.reporter import EXTENDED_DURATION_MS
from ..utils.logger import logger

DEFAULT_NOTICE_MS = 2000
DEFAULT_DEBOUNCE_SECONDS = 3.0


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer (using %s)", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive (using %s)", name, raw, default)
        return default
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number (using %s)", name, raw, default)
        return default
    return max(value, 0.0)


@dataclass(frozen=True)
class Settings:
    service_url: str = ""
    storage_dir: Path = Path(".checkin")
    queue_key: str = DEFAULT_QUEUE_KEY
    submit_timeout_ms: int = DEFAULT_TIMEOUT_MS
    notice_ms: int = DEFAULT_NOTICE_MS
    extended_notice_ms: int = EXTENDED_DURATION_MS
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            service_url=(os.getenv("CHECKIN_SERVICE_URL") or "").strip(),
            storage_dir=Path(os.getenv("CHECKIN_STORAGE_DIR") or ".checkin"),
            queue_key=(os.getenv("CHECKIN_QUEUE_KEY") or DEFAULT_QUEUE_KEY).strip(),
            submit_timeout_ms=_env_int("SUBMIT_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            notice_ms=_env_int("NOTICE_DURATION_MS", DEFAULT_NOTICE_MS),
            extended_notice_ms=_env_int("NOTICE_EXTENDED_DURATION_MS", EXTENDED_DURATION_MS),
            debounce_seconds=_env_float("SCAN_DEBOUNCE_SECONDS", DEFAULT_DEBOUNCE_SECONDS),
        )

    def require_service_url(self) -> str:
        if not self.service_url:
            raise RuntimeError("Missing CHECKIN_SERVICE_URL in environment or .env")
        return self.service_url

    def open_queue(self) -> PendingQueue:
        return PendingQueue(JsonFileStorage(self.storage_dir), key=self.queue_key)


__all__ = ["Settings"]
