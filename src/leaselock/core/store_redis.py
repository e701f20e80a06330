"""Redis-backed lock store using Lua compare-and-set scripts."""

from __future__ import annotations

import os
from typing import Optional

from redis import Redis

from .errors import ConditionFailed
from .models import LockRecord
from .store import ConditionKind, WriteCondition


# KEYS[1] = record key; ARGV = owner, now_ms, lock_path, expiration_ms, ttl_s
_ACQUIRE_LUA = """
local owner = redis.call('HGET', KEYS[1], 'lock_owner')
if owner and owner ~= ARGV[1] then
    local expiration = tonumber(redis.call('HGET', KEYS[1], 'lock_expiration'))
    if expiration and expiration > tonumber(ARGV[2]) then
        return 0
    end
end
redis.call('HSET', KEYS[1], 'lock_path', ARGV[3], 'lock_owner', ARGV[1],
           'lock_expiration', ARGV[4], 'lock_ttl', ARGV[5])
redis.call('EXPIREAT', KEYS[1], ARGV[5])
return 1
"""

_RENEW_LUA = """
if redis.call('HGET', KEYS[1], 'lock_owner') ~= ARGV[1] then
    return 0
end
local expiration = tonumber(redis.call('HGET', KEYS[1], 'lock_expiration'))
if not expiration or expiration <= tonumber(ARGV[2]) then
    return 0
end
redis.call('HSET', KEYS[1], 'lock_path', ARGV[3], 'lock_owner', ARGV[1],
           'lock_expiration', ARGV[4], 'lock_ttl', ARGV[5])
redis.call('EXPIREAT', KEYS[1], ARGV[5])
return 1
"""

# KEYS[1] = record key; ARGV = owner
_RELEASE_LUA = """
if redis.call('HGET', KEYS[1], 'lock_owner') == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""

_PUT_SCRIPTS = {
    ConditionKind.ACQUIRABLE: _ACQUIRE_LUA,
    ConditionKind.HELD: _RENEW_LUA,
}


class RedisLockStore:
    """Stores each lock as a hash at ``{table}:{key}``.

    The hash carries an ``EXPIREAT`` of the record's TTL hint so abandoned
    locks are eventually reclaimed by Redis itself.
    """

    def __init__(self, url: Optional[str] = None, *, client: Optional[Redis] = None) -> None:
        self._redis = client or Redis.from_url(url or os.getenv("REDIS_URL", "redis://localhost:6379/0"))
        self._put_scripts = {
            kind: self._redis.register_script(source) for kind, source in _PUT_SCRIPTS.items()
        }
        self._release_script = self._redis.register_script(_RELEASE_LUA)

    @staticmethod
    def record_key(table: str, key: str) -> str:
        return f"{table}:{key}"

    def conditional_put(self, table: str, record: LockRecord, condition: WriteCondition) -> None:
        script = self._put_scripts.get(condition.kind)
        if script is None:
            raise ValueError(f"Unsupported put condition: {condition.kind.value}")
        written = script(
            keys=[self.record_key(table, record.key)],
            args=[
                condition.owner_id,
                condition.now_ms,
                record.key,
                record.expires_at_ms,
                record.ttl_hint,
            ],
        )
        if not written:
            raise ConditionFailed(f"{condition.kind.value} check failed for {record.key!r}")

    def conditional_delete(self, table: str, key: str, condition: WriteCondition) -> None:
        if condition.kind is not ConditionKind.OWNED:
            raise ValueError(f"Unsupported delete condition: {condition.kind.value}")
        deleted = self._release_script(keys=[self.record_key(table, key)], args=[condition.owner_id])
        if not deleted:
            raise ConditionFailed(f"owned check failed for {key!r}")

    def get(self, table: str, key: str) -> Optional[LockRecord]:
        item = self._redis.hgetall(self.record_key(table, key))
        return LockRecord.from_item(item) if item else None

    def close(self) -> None:
        self._redis.close()
