"""
Content-addressed cache with jittered TTL.

Keys are SHA-256 digests of an operation tag plus a canonical JSON rendering
of its parameters. Every set draws its own random jitter on top of the base
TTL so entries written together do not expire together.

The backing store is best-effort: a failing get behaves as a miss and a
failing set is logged and dropped, so callers fall back to recomputing.
"""

from __future__ import annotations

import hashlib
import json
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any, ttl_ms: int) -> None: ...

    async def ping(self) -> bool: ...


def make_cache_key(operation: str, params: Optional[Dict[str, Any]] = None) -> str:
    canonical = json.dumps(params or {}, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    digest = hashlib.sha256()
    digest.update(operation.encode("utf-8"))
    digest.update(b"\x00")
    digest.update(canonical.encode("utf-8"))
    return digest.hexdigest()


class CacheLayer:
    def __init__(
        self,
        store: CacheStore,
        base_ttl_seconds: float,
        max_jitter_seconds: float = 0.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.base_ttl_seconds = base_ttl_seconds
        self.max_jitter_seconds = max_jitter_seconds
        self._rng = rng or random.Random()

    def ttl_ms(self, ttl_seconds: Optional[float] = None) -> int:
        base = self.base_ttl_seconds if ttl_seconds is None else ttl_seconds
        jitter = self._rng.uniform(0, self.max_jitter_seconds) if self.max_jitter_seconds > 0 else 0.0
        return int((base + jitter) * 1000)

    async def get(self, key: str) -> Optional[Any]:
        try:
            return await self.store.get(key)
        except Exception as e:
            logger.warning("Cache get failed for %s, treating as miss: %s", key, e)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_ms(ttl_seconds)
        try:
            await self.store.set(key, value, ttl)
        except Exception as e:
            logger.warning("Cache set failed for %s: %s", key, e)

    async def get_or_compute(
        self,
        operation: str,
        params: Optional[Dict[str, Any]],
        factory: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Read-through helper; a None result from factory is not cached."""
        key = make_cache_key(operation, params)
        cached = await self.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s %s", operation, params)
            return cached

        logger.debug("Cache miss: %s %s", operation, params)
        value = await factory()
        if value is not None:
            await self.set(key, value)
        return value
