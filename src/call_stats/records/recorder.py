import logging
import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from call_stats.records.record import CallRecord

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)


class MonotonicClock:
    """UTC clock whose readings strictly increase, even if the wall clock stalls or steps back."""

    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            current = self._now()
            if self._last is not None and current <= self._last:
                current = self._last + _TICK
            self._last = current
            return current


class Recorder:
    """Appends one immutable CallRecord per call notification."""

    def __init__(self, store, clock: Callable[[], datetime] | None = None) -> None:
        self.store = store
        self.clock = clock or MonotonicClock()

    def record(self, endpoint: str) -> CallRecord:
        """Persist a new record for ``endpoint`` and return it.

        Raises StorageUnavailable when the store rejects the write; no retry is attempted.
        """
        record = CallRecord(
            record_id=uuid.uuid4().hex,
            endpoint=endpoint,
            recorded_at=self.clock(),
        )
        self.store.append(record)
        logger.debug("call-stats: recorded %r at %s", endpoint, record.recorded_at.isoformat())
        return record
