"""Conversation persistence on top of a key-value store.

Each conversation is a hash at ``chat:<id>``; each user has a sorted set
at ``user:chat:<userId>`` whose members are conversation keys scored by
creation time in milliseconds.
"""

import logging
import time

from .core import TITLE_LENGTH, ChatTurn, Conversation, new_id
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


def build_conversation(
    messages: list[ChatTurn],
    completion: str,
    user_id: str,
    now_ms: int | None = None,
    chat_id: str | None = None,
) -> Conversation:
    """Assemble the record written once a reply has finished streaming.

    ``messages`` is the augmented list sent upstream, persona turn first.
    The title comes from that first turn, so every title is the start of
    the persona prompt. Without an explicit ``chat_id`` the first turn's id
    is reused, or a fresh one generated.
    """
    first = messages[0]
    chat_id = chat_id or first.id or new_id()
    created_at = now_ms if now_ms is not None else int(time.time() * 1000)
    return Conversation(
        id=chat_id,
        title=first.content[:TITLE_LENGTH],
        user_id=user_id,
        created_at=created_at,
        path=f"/chat/{chat_id}",
        messages=[*messages, ChatTurn(role="assistant", content=completion)],
    )


class ConversationHistory:
    """Reads and writes conversations and their per-user index."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    @property
    def store(self) -> KeyValueStore:
        return self._store

    async def save(self, conversation: Conversation) -> None:
        await self._store.hset(conversation.key, conversation.to_record())
        await self._store.zadd(
            Conversation.user_index_key(conversation.user_id),
            {conversation.key: conversation.created_at},
        )
        logger.info(
            "Saved conversation %s for user %s (%d messages)",
            conversation.id, conversation.user_id, len(conversation.messages),
        )

    async def get(self, chat_id: str) -> Conversation | None:
        record = await self._store.hgetall(Conversation.key_for(chat_id))
        if not record:
            return None
        return Conversation.from_record(record)

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[Conversation]:
        """Return a user's conversations, newest first."""
        keys = await self._store.zrevrange(Conversation.user_index_key(user_id), 0, limit - 1)
        conversations = []
        for key in keys:
            record = await self._store.hgetall(key)
            if not record:
                # Index entry whose payload is gone
                logger.warning("Dangling index entry %s for user %s", key, user_id)
                continue
            conversations.append(Conversation.from_record(record))
        return conversations

    async def delete(self, chat_id: str) -> bool:
        """Delete a conversation and its index entry; False if it did not exist."""
        conversation = await self.get(chat_id)
        if conversation is None:
            return False
        await self._store.delete(conversation.key)
        await self._store.zrem(Conversation.user_index_key(conversation.user_id), conversation.key)
        logger.info("Deleted conversation %s", chat_id)
        return True
