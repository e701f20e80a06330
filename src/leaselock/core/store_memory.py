"""In-process lock store."""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from .errors import ConditionFailed
from .models import LockRecord
from .store import WriteCondition


class InMemoryLockStore:
    """
    Thread-safe reference store.

    Used for:
    - Tests
    - Single-process deployments

    Records are never removed by expiry on their own; ``purge_expired``
    plays the part of a store's lagging TTL sweep.
    """

    def __init__(self, *, clock: Optional[Callable[[], int]] = None) -> None:
        self._records: Dict[Tuple[str, str], LockRecord] = {}
        self._lock = threading.Lock()
        self._clock = clock or (lambda: int(time.time() * 1000))

    def conditional_put(self, table: str, record: LockRecord, condition: WriteCondition) -> None:
        with self._lock:
            current = self._records.get((table, record.key))
            if not condition.holds(current):
                raise ConditionFailed(f"{condition.kind.value} check failed for {record.key!r}")
            self._records[(table, record.key)] = record

    def conditional_delete(self, table: str, key: str, condition: WriteCondition) -> None:
        with self._lock:
            current = self._records.get((table, key))
            if current is None or not condition.holds(current):
                raise ConditionFailed(f"{condition.kind.value} check failed for {key!r}")
            del self._records[(table, key)]

    def get(self, table: str, key: str) -> Optional[LockRecord]:
        with self._lock:
            return self._records.get((table, key))

    def purge_expired(self, now_ms: Optional[int] = None) -> int:
        """Drop records whose TTL hint has passed; return how many were removed."""
        now_s = (self._clock() if now_ms is None else now_ms) // 1000
        with self._lock:
            stale = [slot for slot, record in self._records.items() if record.ttl_hint <= now_s]
            for slot in stale:
                del self._records[slot]
        return len(stale)
