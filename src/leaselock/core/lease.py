"""Lease lock handle backed by conditional writes."""

from __future__ import annotations

import threading
import time
import uuid
from typing import Callable, Optional

from leaselock.utils.logging import get_logger

from .errors import AcquisitionAborted, ConditionFailed
from .models import LockPolicy, LockRecord
from .store import ConditionKind, LockStore, WriteCondition


Clock = Callable[[], int]
Sleeper = Callable[[float], None]


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class LeaseLock:
    """
    Time-bounded exclusive claim on ``key``, coordinated through a ``LockStore``.

    Each handle gets its own owner token at construction. Contention between
    handles, in this process or any other, is settled entirely by the store's
    conditional writes.

    A handle is not safe for concurrent use. Callers sharing one across
    threads must serialize ``acquire``/``renew``/``release`` themselves.
    """

    def __init__(
        self,
        store: LockStore,
        key: str,
        policy: Optional[LockPolicy] = None,
        *,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        if not key:
            raise ValueError("Lock key must be a non-empty string")
        self._store = store
        self._key = key
        self._policy = policy or LockPolicy()
        self._owner_id = str(uuid.uuid4())
        self._clock = clock or _wall_clock_ms
        self._sleep = sleep or time.sleep
        self._expires_at_ms: Optional[int] = None
        self._acquired = False
        self.logger = get_logger("leaselock.LeaseLock")

    @property
    def key(self) -> str:
        return self._key

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def policy(self) -> LockPolicy:
        return self._policy

    @property
    def expires_at_ms(self) -> Optional[int]:
        """Expiry this handle last wrote, or None if it holds nothing it knows of."""
        return self._expires_at_ms

    def acquire(self, cancel: Optional[threading.Event] = None) -> bool:
        """Acquire the lease, or extend it if this handle already owns the record.

        Polls every ``poll_interval_ms`` until the acquisition budget is spent.
        The wait also follows the last failed attempt, so a failing call can
        block for up to one poll interval past the timeout.

        Returns True if acquired, False on timeout. Raises ``AcquisitionAborted``
        if ``cancel`` is set before an attempt or while waiting.
        """
        policy = self._policy
        remaining = policy.acquisition_timeout_ms
        attempts = 0

        while remaining >= 0:
            if cancel is not None and cancel.is_set():
                raise AcquisitionAborted(f"Acquisition of {self._key!r} was cancelled")

            attempts += 1
            if self._try_put(ConditionKind.ACQUIRABLE):
                self.logger.info(
                    "Acquired lock %s (owner %s) after %d attempt(s)", self._key, self._owner_id, attempts
                )
                return True
            self.logger.debug(
                "Lock %s is held by another owner; retrying in %d ms", self._key, policy.poll_interval_ms
            )

            remaining -= policy.poll_interval_ms
            self._wait(policy.poll_interval_ms, cancel)

        self.logger.info(
            "Timed out acquiring lock %s after %d ms (%d attempts)",
            self._key,
            policy.acquisition_timeout_ms,
            attempts,
        )
        return False

    def renew(self) -> bool:
        """Extend a lease this handle still holds. An expired lease is never renewed."""
        if self._try_put(ConditionKind.HELD):
            self.logger.debug("Renewed lock %s until %d", self._key, self._expires_at_ms)
            return True
        self.logger.warning("Could not renew lock %s: lease lost or expired", self._key)
        self._expires_at_ms = None
        return False

    def release(self) -> None:
        """Delete the record if this handle still owns it; otherwise do nothing."""
        condition = WriteCondition(ConditionKind.OWNED, self._owner_id)
        try:
            self._store.conditional_delete(self._policy.table, self._key, condition)
        except ConditionFailed:
            self.logger.debug("Lock %s was not owned by %s; nothing to release", self._key, self._owner_id)
        else:
            self.logger.info("Released lock %s", self._key)
        self._expires_at_ms = None

    def _try_put(self, kind: ConditionKind) -> bool:
        now = self._clock()
        record = LockRecord.for_lease(self._key, self._owner_id, now + self._policy.lease_duration_ms)
        try:
            self._store.conditional_put(self._policy.table, record, WriteCondition(kind, self._owner_id, now))
        except ConditionFailed:
            return False
        self._expires_at_ms = record.expires_at_ms
        return True

    def _wait(self, interval_ms: int, cancel: Optional[threading.Event]) -> None:
        if cancel is None:
            self._sleep(interval_ms / 1000)
        elif cancel.wait(interval_ms / 1000):
            raise AcquisitionAborted(f"Acquisition of {self._key!r} was cancelled")

    def __enter__(self) -> bool:
        self._acquired = self.acquire()
        return self._acquired

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._acquired:
            self._acquired = False
            self.release()

    def __repr__(self) -> str:
        return f"LeaseLock(key={self._key!r}, owner_id={self._owner_id!r}, table={self._policy.table!r})"
