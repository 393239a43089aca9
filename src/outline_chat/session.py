"""Client-side conversation controller.

Holds the transcript of one conversation, appends user turns, streams the
assistant reply into the last turn as chunks arrive, and feeds saved edits
back into the conversation. Only one reply may be generating at a time.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

from .core import ChatTurn, new_id
from .editing import MessageEditor
from .errors import GenerationInProgressError
from .gateway import CompletionGateway

logger = logging.getLogger(__name__)


class ChatSession:
    """Transcript state plus the submit/edit flow for one conversation."""

    def __init__(self, gateway: CompletionGateway, preview_token: str | None = None):
        self._gateway = gateway
        self._preview_token = preview_token
        self._turns: list[ChatTurn] = []
        self._generating = False

    @property
    def turns(self) -> list[ChatTurn]:
        return list(self._turns)

    @property
    def is_generating(self) -> bool:
        return self._generating

    def _ensure_idle(self) -> None:
        if self._generating:
            raise GenerationInProgressError("A reply is still being generated")

    async def submit(self, text: str) -> AsyncIterator[ChatTurn]:
        """Append a user turn and stream the reply.

        Yields the assistant turn each time it grows.
        """
        self._ensure_idle()
        self._turns.append(ChatTurn(role="user", content=text, id=new_id()))
        async with aclosing(self.regenerate()) as replies:
            async for turn in replies:
                yield turn

    def editor_for(self, turn: ChatTurn) -> MessageEditor:
        """Return an edit controller whose saves are applied to this transcript."""
        return MessageEditor(turn, on_edit=self.apply_edit)

    def apply_edit(self, updated: ChatTurn) -> None:
        """Replace the turn with ``updated.id`` and drop everything after it."""
        self._ensure_idle()
        for index, turn in enumerate(self._turns):
            if turn.id is not None and turn.id == updated.id:
                self._turns[index:] = [updated]
                logger.debug("Applied edit to turn %s at position %d", updated.id, index)
                return
        raise KeyError(f"No turn with id {updated.id!r} in this conversation")

    async def edit(self, updated: ChatTurn) -> AsyncIterator[ChatTurn]:
        """Apply an edited turn and stream a fresh reply to it."""
        self.apply_edit(updated)
        async with aclosing(self.regenerate()) as replies:
            async for turn in replies:
                yield turn

    async def regenerate(self) -> AsyncIterator[ChatTurn]:
        """Stream a reply to the current transcript.

        On upstream failure the partial reply is removed and the error
        propagates. Stopping iteration early keeps the partial reply and
        closes the upstream stream, so nothing is persisted.
        """
        self._ensure_idle()
        self._generating = True
        history = list(self._turns)
        reply = ChatTurn(role="assistant", content="", id=new_id())
        self._turns.append(reply)
        try:
            chunks = await self._gateway.stream(history, self._preview_token)
            async with aclosing(chunks):
                async for chunk in chunks:
                    reply = reply.with_content(reply.content + chunk)
                    self._turns[-1] = reply
                    yield reply
        except Exception:
            self._turns.pop()
            raise
        finally:
            self._generating = False
