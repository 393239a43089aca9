"""Core data models for outline-chat."""

import json
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]

TITLE_LENGTH = 100


def new_id() -> str:
    """Return a fresh random identifier."""
    return uuid4().hex


class ChatTurn(BaseModel):
    """One message in a conversation, tagged by role."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Role of the message sender")
    content: str = Field(description="Content of the message")
    id: str | None = Field(default=None, description="Client-side message id")

    def with_content(self, content: str) -> "ChatTurn":
        """Return a copy of this turn with its content replaced."""
        return self.model_copy(update={"content": content})

    def to_wire(self) -> dict:
        return self.model_dump(exclude_none=True)


class Conversation(BaseModel):
    """Persisted record of one full exchange."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    user_id: str = Field(alias="userId")
    created_at: int = Field(alias="createdAt", description="Milliseconds since the epoch")
    path: str
    messages: list[ChatTurn] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return f"chat:{self.id}"

    @staticmethod
    def key_for(chat_id: str) -> str:
        return f"chat:{chat_id}"

    @staticmethod
    def user_index_key(user_id: str) -> str:
        return f"user:chat:{user_id}"

    def to_dict(self) -> dict:
        """Convert to the camelCase JSON shape used on the wire."""
        return {
            "id": self.id,
            "title": self.title,
            "userId": self.user_id,
            "createdAt": self.created_at,
            "path": self.path,
            "messages": [m.to_wire() for m in self.messages],
        }

    def to_record(self) -> dict[str, str | int]:
        """Flatten into hash fields; the message list is stored as JSON."""
        data = self.to_dict()
        data["messages"] = json.dumps(data["messages"], ensure_ascii=False)
        return data

    @classmethod
    def from_record(cls, record: dict) -> "Conversation":
        """Rebuild a conversation from hash fields read back from the store."""
        data = dict(record)
        messages = data.get("messages") or "[]"
        if isinstance(messages, (str, bytes)):
            messages = json.loads(messages)
        data["messages"] = messages
        return cls.model_validate(data)
