import json
import pathlib
import sys

import pytest

SYS_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = SYS_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from scan_checkin.core.errors import StorageError
from scan_checkin.core.queue import JsonFileStorage, MemoryStorage, PendingQueue
from scan_checkin.core.records import CheckInRecord


class CountingStorage(MemoryStorage):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.reads = 0

    def read(self, key):
        self.reads += 1
        return super().read(key)


RECORDS = [
    CheckInRecord(name="Ada Lovelace", id="17"),
    CheckInRecord(name="Grace Hopper"),
]


def test_set_then_get_round_trips_and_persists():
    storage = MemoryStorage()
    queue = PendingQueue(storage)

    assert queue.set(RECORDS) is queue
    assert queue.get() == RECORDS
    assert json.loads(storage.data["scanQueue"]) == [
        {"name": "Ada Lovelace", "id": "17"},
        {"name": "Grace Hopper"},
    ]


@pytest.mark.parametrize("initial", [{}, {"scanQueue": ""}, {"scanQueue": "   "}])
def test_missing_or_empty_storage_reads_as_empty(initial):
    assert PendingQueue(MemoryStorage(initial)).get() == []


def test_storage_is_read_only_on_first_access():
    storage = CountingStorage({"scanQueue": json.dumps([{"name": "Ada Lovelace"}])})
    queue = PendingQueue(storage)

    first = queue.get()
    storage.data["scanQueue"] = json.dumps([{"name": "Someone Else"}])
    second = queue.get()

    assert storage.reads == 1
    assert first == second == [CheckInRecord(name="Ada Lovelace")]


def test_custom_key_is_used_for_storage():
    storage = MemoryStorage()
    PendingQueue(storage, key="frontDesk").set(RECORDS[:1])
    assert "frontDesk" in storage.data
    assert "scanQueue" not in storage.data


def test_file_storage_survives_a_new_queue_instance(tmp_path):
    PendingQueue(JsonFileStorage(tmp_path)).set(RECORDS)

    reloaded = PendingQueue(JsonFileStorage(tmp_path)).get()

    assert reloaded == RECORDS
    assert sorted(p.name for p in tmp_path.iterdir()) == ["scanQueue.json"]


def test_file_write_failure_raises_storage_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    queue = PendingQueue(JsonFileStorage(blocker / "queue"))

    with pytest.raises(StorageError):
        queue.set(RECORDS)


def test_failed_write_leaves_cache_matching_storage():
    class FullStorage(MemoryStorage):
        def write(self, key, value):
            raise StorageError("quota exceeded")

    queue = PendingQueue(FullStorage({"scanQueue": json.dumps([{"name": "Grace Hopper"}])}))
    queue.get()

    with pytest.raises(StorageError, match="quota"):
        queue.set(RECORDS)

    assert queue.get() == [CheckInRecord(name="Grace Hopper")]


def test_corrupt_queue_is_reported_not_discarded():
    storage = MemoryStorage({"scanQueue": "{not json"})
    with pytest.raises(StorageError):
        PendingQueue(storage).get()
    assert storage.data["scanQueue"] == "{not json"
