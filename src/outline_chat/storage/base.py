"""Abstract key-value store used for conversation history.

The interface is the subset of Redis commands the service needs: hashes
for conversation payloads and sorted sets for per-user indexes.
"""

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Async key-value store with hash and sorted-set operations."""

    @abstractmethod
    async def hset(self, key: str, mapping: dict[str, str | int | float]) -> None:
        """Write fields into the hash at ``key``."""

    @abstractmethod
    async def hgetall(self, key: str) -> dict[str, str]:
        """Return every field of the hash at ``key`` (empty if missing)."""

    @abstractmethod
    async def zadd(self, key: str, mapping: dict[str, float]) -> None:
        """Add members with scores to the sorted set at ``key``."""

    @abstractmethod
    async def zrevrange(self, key: str, start: int, stop: int) -> list[str]:
        """Return members by descending score, ``stop`` inclusive as in Redis."""

    @abstractmethod
    async def zrem(self, key: str, member: str) -> None:
        """Remove a member from a sorted set."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete ``key``; return True if it existed."""

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Identifier of the backend ("memory", "redis")."""
