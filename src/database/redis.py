"""
Lightweight in-memory RedisCache replacement for local development.

Implements the same async get/set/ping interface as src.database.redis_real
so the proxy can run without a real Redis instance. Entries do not survive a
restart; expiry is honoured lazily on the next get.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional, Tuple


class RedisCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        # key -> (value, expires_at in clock seconds)
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._clock = clock

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        self._entries[key] = (value, self._clock() + ttl_ms / 1000.0)

    async def ping(self) -> bool:
        """Health check; always True in local/dev mode."""
        return True

    def __len__(self) -> int:
        return len(self._entries)
