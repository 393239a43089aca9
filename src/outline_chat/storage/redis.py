"""Redis key-value store backed by ``redis.asyncio``."""

import logging

from redis.asyncio import Redis

from .base import KeyValueStore

logger = logging.getLogger(__name__)


class RedisStore(KeyValueStore):
    """Key-value store on a Redis server."""

    def __init__(self, url: str, **client_kwargs):
        self._url = url
        self._client = Redis.from_url(url, decode_responses=True, **client_kwargs)

    async def hset(self, key: str, mapping: dict[str, str | int | float]) -> None:
        await self._client.hset(key, mapping=mapping)

    async def hgetall(self, key: str) -> dict[str, str]:
        return await self._client.hgetall(key)

    async def zadd(self, key: str, mapping: dict[str, float]) -> None:
        await self._client.zadd(key, mapping)

    async def zrevrange(self, key: str, start: int, stop: int) -> list[str]:
        return await self._client.zrevrange(key, start, stop)

    async def zrem(self, key: str, member: str) -> None:
        await self._client.zrem(key, member)

    async def delete(self, key: str) -> bool:
        return bool(await self._client.delete(key))

    async def close(self) -> None:
        logger.debug("Closing Redis connection to %s", self._url)
        await self._client.aclose()

    @property
    def backend_type(self) -> str:
        return "redis"
