"""
In-process cache backend.

Used for local development and tests. Expiry is lazy: an expired entry is
dropped the next time it is read.
"""

import copy
import time
from typing import Any, Callable, Dict, Optional, Tuple

from commerce_iam.app.services.cache import ICache


class InMemoryCache(ICache):
    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}

    def _live(self, key: str) -> Optional[Tuple[Any, Optional[float]]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self._entries[key]
            return None
        return entry

    def _expiry(self, ttl: Optional[int]) -> Optional[float]:
        return self.clock() + ttl if ttl else None

    async def get(self, key: str) -> Optional[Any]:
        entry = self._live(key)
        return copy.deepcopy(entry[0]) if entry else None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        self._entries[key] = (copy.deepcopy(value), self._expiry(ttl))

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def incr(self, key: str, ttl: Optional[int] = None) -> int:
        entry = self._live(key)
        value = int(entry[0]) + 1 if entry else 1
        expires_at = self._expiry(ttl) if ttl else (entry[1] if entry else None)
        self._entries[key] = (value, expires_at)
        return value
