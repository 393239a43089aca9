"""Abstract base class for hosted completion providers."""

from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from typing import Any

from .core import ChatTurn


class CompletionProvider(ABC):
    """Base class for streamed chat completion backends.

    A backend hides the SDK, wire format and authentication of one hosted
    completion API. Credentials passed per call apply to that call only.

    Supports the async context manager protocol:
        async with provider:
            chunks = await provider.stream_completion(messages, model="...")
    """

    name: str

    @abstractmethod
    async def stream_completion(
        self,
        messages: list[ChatTurn],
        *,
        model: str,
        temperature: float = 0.7,
        api_key: str | None = None,
    ) -> AsyncGenerator[str, None]:
        """Open a streamed completion and return its text deltas.

        Awaiting this method issues the upstream request, so failures
        known before the first token (bad credential, rate limit, network)
        are raised here. Failures after that are raised while iterating.

        Args:
            messages: Full conversation, persona turn included
            model: Model identifier
            temperature: Sampling temperature
            api_key: Credential overriding the default for this call only

        Returns:
            Async generator yielding text chunks in arrival order
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release any open connections."""
        ...

    async def __aenter__(self) -> "CompletionProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
