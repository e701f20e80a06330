"""Lock settings loader and store factory."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from leaselock.utils.env import get_int_env

from .models import LockPolicy

if TYPE_CHECKING:
    from .lease import LeaseLock
    from .store import LockStore


Backend = Literal["memory", "redis", "dynamodb"]


class RedisSettings(BaseModel):
    url: Optional[str] = None  # falls back to REDIS_URL


class DynamoDBSettings(BaseModel):
    region_name: Optional[str] = None
    endpoint_url: Optional[str] = None  # e.g. http://localhost:8000 for DynamoDB Local
    request_timeout_s: float = Field(default=10.0, gt=0)


class LockSettings(BaseModel):
    backend: Backend = "redis"
    redis: RedisSettings = Field(default_factory=RedisSettings)
    dynamodb: DynamoDBSettings = Field(default_factory=DynamoDBSettings)
    policy: LockPolicy = Field(default_factory=LockPolicy)

    @classmethod
    def from_file(cls, path: Path) -> "LockSettings":
        data = yaml.safe_load(path.read_text()) or {}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lock settings: {exc}") from exc

    @classmethod
    def from_env(cls) -> "LockSettings":
        policy = {
            "table": os.getenv("LEASELOCK_TABLE"),
            "acquisition_timeout_ms": get_int_env("LEASELOCK_ACQUISITION_TIMEOUT_MS"),
            "lease_duration_ms": get_int_env("LEASELOCK_LEASE_DURATION_MS"),
            "poll_interval_ms": get_int_env("LEASELOCK_POLL_INTERVAL_MS"),
        }
        data = {
            "backend": os.getenv("LEASELOCK_BACKEND", "redis"),
            "redis": {"url": os.getenv("REDIS_URL")},
            "dynamodb": {
                "region_name": os.getenv("LEASELOCK_DYNAMODB_REGION"),
                "endpoint_url": os.getenv("LEASELOCK_DYNAMODB_ENDPOINT"),
            },
            "policy": {name: value for name, value in policy.items() if value is not None},
        }
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lock settings in environment: {exc}") from exc

    def build_store(self) -> "LockStore":
        """Instantiate the configured store; backend clients are imported on demand."""
        if self.backend == "memory":
            from .store_memory import InMemoryLockStore

            return InMemoryLockStore()
        if self.backend == "redis":
            from .store_redis import RedisLockStore

            return RedisLockStore(self.redis.url)

        from .store_dynamodb import DynamoDBLockStore

        return DynamoDBLockStore(
            region_name=self.dynamodb.region_name,
            endpoint_url=self.dynamodb.endpoint_url,
            request_timeout_s=self.dynamodb.request_timeout_s,
        )

    def new_lock(self, key: str, store: Optional["LockStore"] = None) -> "LeaseLock":
        from .lease import LeaseLock

        return LeaseLock(store if store is not None else self.build_store(), key, self.policy)
