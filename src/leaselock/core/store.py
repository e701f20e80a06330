"""Storage contract consumed by the lease lock."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from .models import LockRecord


class ConditionKind(str, Enum):
    """Predicates a store must evaluate atomically against the current record."""

    # no record, or another owner's expired record, or our own record
    ACQUIRABLE = "acquirable"
    # our own record and not yet expired
    HELD = "held"
    # our own record, expired or not
    OWNED = "owned"


@dataclass(frozen=True)
class WriteCondition:
    """A predicate plus the values bound into it."""

    kind: ConditionKind
    owner_id: str
    now_ms: int = 0

    def holds(self, current: Optional[LockRecord]) -> bool:
        if current is None:
            return self.kind is ConditionKind.ACQUIRABLE
        owned = current.owner_id == self.owner_id
        if self.kind is ConditionKind.ACQUIRABLE:
            return owned or current.is_expired(self.now_ms)
        if self.kind is ConditionKind.HELD:
            return owned and not current.is_expired(self.now_ms)
        return owned


class LockStore(Protocol):
    """Key-value store with atomic conditional writes.

    Both operations must be atomic and linearizable per key. A rejected
    predicate raises ``ConditionFailed``; any other failure propagates as the
    backend's own exception.
    """

    def conditional_put(self, table: str, record: LockRecord, condition: WriteCondition) -> None:
        ...

    def conditional_delete(self, table: str, key: str, condition: WriteCondition) -> None:
        ...
