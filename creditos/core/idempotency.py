import asyncio
import json
import logging
from typing import Any, Optional

import redis.asyncio as redis_async

from creditos.core.config import settings

logger = logging.getLogger(__name__)


class IdempotencyStore:
    """Pluggable idempotency store for non-idempotent POSTs.

    Uses Redis when REDIS_URL is configured. Otherwise keeps entries in memory
    with a TTL, which only dedupes within a single process.
    """

    def __init__(self, redis_url: Optional[str] = None):
        self._use_redis = bool(redis_url)
        if self._use_redis:
            self._client = redis_async.from_url(redis_url)
        else:
            # key -> (value_json, expire_at)
            self._store = {}
            self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        if self._use_redis:
            raw = await self._client.get(key)
            if not raw:
                return None
            try:
                return json.loads(raw)
            except ValueError:
                logger.warning("Discarding unreadable idempotency entry for key %s", key)
                return None

        async with self._lock:
            entry = self._store.get(key)
            if not entry:
                return None
            value_json, expire_at = entry
            if expire_at and expire_at < asyncio.get_running_loop().time():
                del self._store[key]
                return None
            return json.loads(value_json)

    async def set(self, key: str, value: Any, ttl_seconds: int = 24 * 3600):
        raw = json.dumps(value, default=str)
        if self._use_redis:
            await self._client.set(key, raw, ex=ttl_seconds)
            return

        async with self._lock:
            now = asyncio.get_running_loop().time()
            self._purge_expired(now)
            expire_at = now + ttl_seconds if ttl_seconds else None
            self._store[key] = (raw, expire_at)

    def _purge_expired(self, now: float):
        keys_to_delete = [k for k, (_, exp) in self._store.items() if exp and exp < now]
        for k in keys_to_delete:
            del self._store[k]


_STORE: Optional[IdempotencyStore] = None


def get_idempotency_store() -> IdempotencyStore:
    global _STORE
    if _STORE is None:
        _STORE = IdempotencyStore(settings.REDIS_URL)
    return _STORE
