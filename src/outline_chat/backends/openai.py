"""OpenAI chat completions backend.

Streams ``chat.completions`` deltas through ``openai.AsyncOpenAI``. A
per-call credential is applied with ``with_options``, which returns a
copy of the client; the shared client keeps its own key. Without a
default key, a per-call credential gets a client of its own that is
closed when its stream ends.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any

from openai import APIError, APIStatusError, AsyncOpenAI

from ..core import ChatTurn
from ..errors import MissingCredentialError, UpstreamError
from ..provider import CompletionProvider

logger = logging.getLogger(__name__)


def _upstream_error(exc: APIError) -> UpstreamError:
    """Translate an SDK exception into an ``UpstreamError``."""
    if isinstance(exc, APIStatusError):
        return UpstreamError(exc.message, status_code=exc.status_code)
    return UpstreamError(f"Completion API failed: {exc.message}", status_code=502)


class OpenAIProvider(CompletionProvider):
    """Provider for the OpenAI chat completions API."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any,
    ):
        self._client_options = {"base_url": base_url, "organization": organization, **client_kwargs}
        self._client: AsyncOpenAI | None = None
        if api_key:
            self._client = AsyncOpenAI(api_key=api_key, **self._client_options)

    def _client_for(self, api_key: str | None) -> tuple[AsyncOpenAI, bool]:
        """Return the client for one call and whether the call owns it.

        Raises:
            MissingCredentialError: If neither a default key nor ``api_key`` is set
        """
        if api_key:
            if self._client is not None:
                return self._client.with_options(api_key=api_key), False
            return AsyncOpenAI(api_key=api_key, **self._client_options), True
        if self._client is None:
            raise MissingCredentialError(
                "No API key configured: set OPENAI_API_KEY or send a preview token"
            )
        return self._client, False

    async def stream_completion(
        self,
        messages: list[ChatTurn],
        *,
        model: str,
        temperature: float = 0.7,
        api_key: str | None = None,
    ) -> AsyncGenerator[str, None]:
        client, owned = self._client_for(api_key)
        try:
            stream = await client.chat.completions.create(
                model=model,
                messages=[{"role": m.role, "content": m.content} for m in messages],
                temperature=temperature,
                stream=True,
            )
        except APIError as e:
            logger.warning("Completion request failed: %s", e)
            if owned:
                await client.close()
            raise _upstream_error(e) from e
        logger.debug("Opened completion stream (model=%s, turns=%d)", model, len(messages))
        return self._deltas(stream, client if owned else None)

    async def _deltas(self, stream, owned_client: AsyncOpenAI | None = None) -> AsyncGenerator[str, None]:
        """Yield the text content of each streamed chunk."""
        try:
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        except APIError as e:
            logger.warning("Completion stream aborted: %s", e)
            raise _upstream_error(e) from e
        finally:
            await stream.close()
            if owned_client is not None:
                await owned_client.close()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
