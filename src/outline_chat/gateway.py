"""Completion gateway: persona augmentation, streaming relay, persistence.

The gateway forwards a conversation to the completion provider and hands
the caller an async iterator of text chunks as soon as the upstream
request is open. When the upstream signals end-of-stream, the full text
is persisted once. A consumer that stops early, or an upstream that fails,
never reaches that point, so nothing is written.
"""

import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import aclosing

from .config import DEFAULT_MODEL, DEFAULT_TEMPERATURE
from .core import ChatTurn, new_id
from .history import ConversationHistory, build_conversation
from .persona import persona_turn
from .provider import CompletionProvider

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[str], Awaitable[None]]


async def relay(
    chunks: AsyncGenerator[str, None],
    on_completion: CompletionCallback,
) -> AsyncGenerator[str, None]:
    """Forward ``chunks`` unchanged and report the accumulated text at the end.

    ``on_completion`` runs exactly once, after the upstream iterator is
    exhausted. Closing this generator early or an exception from ``chunks``
    skips it; either way ``chunks`` is closed.
    """
    parts: list[str] = []
    async with aclosing(chunks):
        async for chunk in chunks:
            parts.append(chunk)
            yield chunk
    await on_completion("".join(parts))


class ReplyStream:
    """Async iterator over reply chunks that also carries the record ids.

    ``chat_id`` and ``user_id`` are fixed before the first chunk, so a
    caller can hand them out while the reply is still streaming.
    """

    def __init__(self, chunks: AsyncGenerator[str, None], chat_id: str, user_id: str):
        self._chunks = chunks
        self.chat_id = chat_id
        self.user_id = user_id

    def __aiter__(self) -> "ReplyStream":
        return self

    async def __anext__(self) -> str:
        return await self._chunks.__anext__()

    async def aclose(self) -> None:
        await self._chunks.aclose()


class CompletionGateway:
    """Streams persona-augmented completions and records finished ones."""

    def __init__(
        self,
        provider: CompletionProvider,
        history: ConversationHistory,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
    ):
        self._provider = provider
        self._history = history
        self.model = model
        self.temperature = temperature

    @property
    def history(self) -> ConversationHistory:
        return self._history

    def augment(self, messages: list[ChatTurn]) -> list[ChatTurn]:
        """Prepend the persona turn to the caller's turns."""
        return [persona_turn(), *messages]

    async def stream(
        self,
        messages: list[ChatTurn],
        preview_token: str | None = None,
    ) -> ReplyStream:
        """Open a streamed reply for ``messages``.

        An empty ``messages`` list is valid: the persona turn alone asks the
        model to open the conversation.

        Args:
            messages: Prior turns in conversation order
            preview_token: Credential used for this call instead of the default

        Returns:
            ReplyStream of chunks in arrival order, with the conversation
            and user ids the finished reply will be stored under

        Raises:
            Exception: Provider errors raised while opening the request
        """
        augmented = self.augment(messages)
        chat_id = augmented[0].id or new_id()
        user_id = new_id()

        chunks = await self._provider.stream_completion(
            augmented,
            model=self.model,
            temperature=self.temperature,
            api_key=preview_token,
        )

        async def on_completion(completion: str) -> None:
            conversation = build_conversation(augmented, completion, user_id, chat_id=chat_id)
            try:
                await self._history.save(conversation)
            except Exception:
                # Reply already sent; the conversation is missing from history.
                logger.exception("Failed to persist conversation %s", conversation.id)

        return ReplyStream(relay(chunks, on_completion), chat_id, user_id)

    async def close(self) -> None:
        """Close the provider and the underlying store."""
        await self._provider.close()
        await self._history.store.close()
