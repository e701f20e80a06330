"""Exception types raised by the lease lock."""

from __future__ import annotations


class LeaseLockError(Exception):
    """Base class for lease lock errors."""


class ConditionFailed(LeaseLockError):
    """A conditional write was rejected because its predicate did not hold.

    Stores raise this for contention only. Transport and backend failures
    propagate as the store client's own exceptions.
    """


class AcquisitionAborted(LeaseLockError):
    """``acquire`` was cancelled while waiting for the lease."""
