"""Best-effort lease locks over stores with atomic conditional writes."""

from .core import (
    AcquisitionAborted,
    InMemoryLockStore,
    LeaseLock,
    LeaseLockError,
    LockPolicy,
    LockRecord,
    LockSettings,
)

__all__ = [
    "AcquisitionAborted",
    "InMemoryLockStore",
    "LeaseLock",
    "LeaseLockError",
    "LockPolicy",
    "LockRecord",
    "LockSettings",
    "__version__",
]

__version__ = "0.1.0"
