from __future__ import annotations

from typing import List

import pytest

from leaselock.core.store_memory import InMemoryLockStore


class FakeClock:
    """Millisecond clock that only moves when slept on or advanced."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = start_ms
        self.sleeps: List[float] = []

    def __call__(self) -> int:
        return self.now_ms

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now_ms += int(round(seconds * 1000))

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryLockStore:
    return InMemoryLockStore(clock=clock)
