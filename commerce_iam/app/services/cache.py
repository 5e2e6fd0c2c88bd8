"""
Cache collaborator interface.

Plain string keys with optional TTL. There is no wildcard scan: every feature
tracks the exact keys it has to invalidate. Backends raise ``CacheError`` on
any fault so callers can decide between falling back and failing open.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class CacheError(Exception):
    """Raised when the cache backend cannot serve a request"""


class ICache(ABC):
    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the JSON-compatible value stored at key, or None"""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a JSON-compatible value, expiring after ttl seconds when given"""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def incr(self, key: str, ttl: Optional[int] = None) -> int:
        """Atomically increment an integer counter and (re)arm its TTL"""
        pass

    async def close(self) -> None:
        """Release backend resources"""
        return None
