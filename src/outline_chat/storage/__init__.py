"""Key-value storage for conversation history."""

from .base import KeyValueStore
from .memory import InMemoryStore


def create_store(url: str, **kwargs) -> KeyValueStore:
    """Create a store from a URL.

    ``memory://`` keeps data in process; ``redis://`` and ``rediss://``
    connect to a Redis server.

    Raises:
        ValueError: If the URL scheme is not supported
    """
    scheme = url.split("://", 1)[0].lower() if "://" in url else ""

    if scheme == "memory":
        return InMemoryStore()

    if scheme in ("redis", "rediss"):
        from .redis import RedisStore
        return RedisStore(url, **kwargs)

    raise ValueError(
        f"Unsupported store URL: {url!r}. "
        f"Supported schemes: memory://, redis://, rediss://"
    )


__all__ = ["InMemoryStore", "KeyValueStore", "create_store"]
