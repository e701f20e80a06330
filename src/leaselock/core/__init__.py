"""Core lease lock primitives."""

from .errors import AcquisitionAborted, ConditionFailed, LeaseLockError
from .lease import LeaseLock
from .models import LockPolicy, LockRecord
from .settings import LockSettings
from .store import ConditionKind, LockStore, WriteCondition
from .store_memory import InMemoryLockStore

__all__ = [
    "AcquisitionAborted",
    "ConditionFailed",
    "ConditionKind",
    "InMemoryLockStore",
    "LeaseLock",
    "LeaseLockError",
    "LockPolicy",
    "LockRecord",
    "LockSettings",
    "LockStore",
    "WriteCondition",
]
