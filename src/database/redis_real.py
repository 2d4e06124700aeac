"""
Real Redis-backed cache for production when REDIS_URL is set. Implements the
same interface as src.database.redis (in-memory stub).

Durability across restarts comes from the Redis server's own persistence
(RDB/AOF); expiry is delegated to Redis via PX.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import redis.asyncio as redis


class RedisCache:
    """
    Redis-backed key/value cache. Values are stored as JSON.
    """

    def __init__(self, url: str, key_prefix: str = "augment:") -> None:
        self._client = redis.from_url(url, decode_responses=True)
        self._prefix = key_prefix

    async def get(self, key: str) -> Optional[Any]:
        raw = await self._client.get(self._prefix + key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        payload = json.dumps(value, default=str, ensure_ascii=False)
        await self._client.set(self._prefix + key, payload, px=max(int(ttl_ms), 1))

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()
