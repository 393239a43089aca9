"""In-memory key-value store.

Dict-backed; data is lost when the process exits. Suitable for local
runs and tests.
"""

from .base import KeyValueStore


class InMemoryStore(KeyValueStore):
    """Key-value store held in process memory."""

    def __init__(self):
        self._hashes: dict[str, dict[str, str]] = {}
        self._zsets: dict[str, dict[str, float]] = {}

    async def hset(self, key: str, mapping: dict[str, str | int | float]) -> None:
        fields = self._hashes.setdefault(key, {})
        # Redis stores every field value as a string
        fields.update({k: str(v) for k, v in mapping.items()})

    async def hgetall(self, key: str) -> dict[str, str]:
        return dict(self._hashes.get(key, {}))

    async def zadd(self, key: str, mapping: dict[str, float]) -> None:
        self._zsets.setdefault(key, {}).update(mapping)

    async def zrevrange(self, key: str, start: int, stop: int) -> list[str]:
        members = sorted(
            self._zsets.get(key, {}).items(),
            key=lambda item: (item[1], item[0]),
            reverse=True,
        )
        names = [m for m, _ in members]
        if stop == -1:
            return names[start:]
        return names[start:stop + 1]

    async def zrem(self, key: str, member: str) -> None:
        zset = self._zsets.get(key)
        if zset is not None:
            zset.pop(member, None)
            if not zset:
                del self._zsets[key]

    async def delete(self, key: str) -> bool:
        existed = key in self._hashes or key in self._zsets
        self._hashes.pop(key, None)
        self._zsets.pop(key, None)
        return existed

    async def close(self) -> None:
        pass

    @property
    def backend_type(self) -> str:
        return "memory"
