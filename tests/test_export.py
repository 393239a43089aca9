"""Tests for export functionality."""

import json

import pytest

from outline_chat.core import ChatTurn, Conversation
from outline_chat.export import conversation_to_json, conversation_to_markdown
from outline_chat.persona import persona_turn


@pytest.fixture
def sample_conversation():
    return Conversation(
        id="abc123",
        title="I'd like to develop a chat persona",
        user_id="user-1",
        created_at=1736935200000,  # 2025-01-15T10:00:00Z
        path="/chat/abc123",
        messages=[
            persona_turn(),
            ChatTurn(role="user", content="My book is about gardening", id="m1"),
            ChatTurn(
                role="assistant",
                content="Great! Here's a snippet:\n\n```python\nprint('grow')\n```",
            ),
        ],
    )


class TestMarkdownExport:
    def test_produces_valid_markdown(self, sample_conversation):
        result = conversation_to_markdown(sample_conversation)
        assert isinstance(result, str)
        assert len(result) > 0

    def test_includes_title(self, sample_conversation):
        result = conversation_to_markdown(sample_conversation)
        assert result.startswith("# I'd like to develop a chat persona")

    def test_includes_metadata(self, sample_conversation):
        result = conversation_to_markdown(sample_conversation)
        assert "**Conversation:** abc123" in result
        assert "**Created:** 2025-01-15T10:00:00+00:00" in result
        assert "**Messages:** 3" in result

    def test_includes_turns_in_order(self, sample_conversation):
        result = conversation_to_markdown(sample_conversation)
        assert "## User" in result
        assert "## Assistant" in result
        assert result.index("## User") < result.index("## Assistant")
        assert "```python" in result

    def test_hides_persona_by_default(self, sample_conversation):
        assert "## System" not in conversation_to_markdown(sample_conversation)
        assert "## System" in conversation_to_markdown(sample_conversation, include_system=True)


class TestJsonExport:
    def test_produces_valid_json(self, sample_conversation):
        data = json.loads(conversation_to_json(sample_conversation))
        assert data["id"] == "abc123"
        assert data["userId"] == "user-1"
        assert data["createdAt"] == 1736935200000
        assert data["createdAtIso"] == "2025-01-15T10:00:00+00:00"

    def test_messages_preserved(self, sample_conversation):
        data = json.loads(conversation_to_json(sample_conversation))
        assert [m["role"] for m in data["messages"]] == ["system", "user", "assistant"]
        assert data["messages"][1] == {"role": "user", "content": "My book is about gardening", "id": "m1"}
