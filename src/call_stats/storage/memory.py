import threading

from call_stats.records.record import CallRecord
from call_stats.storage.errors import StorageUnavailable


class MemoryRecordStore:
    """Thread-safe in-process record store. Records are kept in insertion order."""

    def __init__(self, records: list[CallRecord] | None = None) -> None:
        self._records: list[CallRecord] = list(records or [])
        self._lock = threading.Lock()
        self.fail = False

    def append(self, record: CallRecord) -> None:
        with self._lock:
            self._check_available("append")
            self._records.append(record)

    def scan(self) -> list[CallRecord]:
        with self._lock:
            self._check_available("scan")
            return self._records[:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _check_available(self, action: str) -> None:
        if self.fail:
            raise StorageUnavailable(f"record store {action} failed")
