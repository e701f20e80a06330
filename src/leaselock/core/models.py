"""Data models for persisted lock records and lock policy."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_LOCK_TABLE = "DYNAMODB_LOCKS"
DEFAULT_ACQUISITION_TIMEOUT_MS = 10_000
DEFAULT_LEASE_DURATION_MS = 60_000
DEFAULT_POLL_INTERVAL_MS = 100

# Persisted attribute names, shared by every store.
KEY_ATTR = "lock_path"
OWNER_ATTR = "lock_owner"
EXPIRATION_ATTR = "lock_expiration"
TTL_ATTR = "lock_ttl"


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


class LockRecord(BaseModel):
    """Lease record stored once per key."""

    model_config = ConfigDict(frozen=True)

    key: str
    owner_id: str
    expires_at_ms: int
    ttl_hint: int

    @classmethod
    def for_lease(cls, key: str, owner_id: str, expires_at_ms: int) -> "LockRecord":
        return cls(
            key=key,
            owner_id=owner_id,
            expires_at_ms=expires_at_ms,
            ttl_hint=expires_at_ms // 1000 + 1,
        )

    def is_expired(self, now_ms: int) -> bool:
        """Return True once the lease is logically free, stored or not."""
        return self.expires_at_ms <= now_ms

    def to_item(self) -> Dict[str, Any]:
        return {
            KEY_ATTR: self.key,
            OWNER_ATTR: self.owner_id,
            EXPIRATION_ATTR: self.expires_at_ms,
            TTL_ATTR: self.ttl_hint,
        }

    @classmethod
    def from_item(cls, item: Mapping[Any, Any]) -> "LockRecord":
        """Build a record from a flat attribute map; keys and values may be bytes."""
        data = {_text(name): value for name, value in item.items()}
        try:
            return cls(
                key=_text(data[KEY_ATTR]),
                owner_id=_text(data[OWNER_ATTR]),
                expires_at_ms=int(_text(data[EXPIRATION_ATTR])),
                ttl_hint=int(_text(data[TTL_ATTR])),
            )
        except KeyError as exc:
            raise ValueError(f"Lock item is missing attribute {exc.args[0]!r}") from exc


class LockPolicy(BaseModel):
    """Timing policy and target table for a lease lock."""

    model_config = ConfigDict(frozen=True)

    acquisition_timeout_ms: int = Field(default=DEFAULT_ACQUISITION_TIMEOUT_MS, ge=0)
    lease_duration_ms: int = Field(default=DEFAULT_LEASE_DURATION_MS, gt=0)
    poll_interval_ms: int = Field(default=DEFAULT_POLL_INTERVAL_MS, gt=0)
    table: str = Field(default=DEFAULT_LOCK_TABLE, min_length=1)
