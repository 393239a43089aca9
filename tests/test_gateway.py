"""Tests for the completion gateway and streaming relay."""

import json
import logging

import pytest

from conftest import ScriptedProvider
from outline_chat.core import ChatTurn
from outline_chat.errors import UpstreamError
from outline_chat.gateway import CompletionGateway, relay
from outline_chat.history import ConversationHistory
from outline_chat.persona import PERSONA_PROMPT


async def _collect(chunks):
    return [c async for c in chunks]


async def _agen(items):
    for item in items:
        yield item


class TestRelay:
    @pytest.mark.asyncio
    async def test_forwards_chunks_in_order_and_completes_once(self):
        completions = []

        async def on_completion(text):
            completions.append(text)

        received = await _collect(relay(_agen(["a", "b", "c"]), on_completion))
        assert received == ["a", "b", "c"]
        assert completions == ["abc"]

    @pytest.mark.asyncio
    async def test_empty_upstream_completes_with_empty_text(self):
        completions = []

        async def on_completion(text):
            completions.append(text)

        assert await _collect(relay(_agen([]), on_completion)) == []
        assert completions == [""]

    @pytest.mark.asyncio
    async def test_closing_early_skips_completion(self):
        completions = []

        async def on_completion(text):
            completions.append(text)

        stream = relay(_agen(["a", "b", "c"]), on_completion)
        assert await stream.__anext__() == "a"
        await stream.aclose()
        assert completions == []


class TestCompletionGateway:
    @pytest.mark.asyncio
    async def test_prepends_persona_and_uses_fixed_parameters(self, gateway, provider):
        await _collect(await gateway.stream([ChatTurn(role="user", content="Hi")]))

        call = provider.calls[0]
        assert call["messages"][0] == ChatTurn(role="system", content=PERSONA_PROMPT)
        assert call["messages"][1] == ChatTurn(role="user", content="Hi")
        assert call["model"] == "gpt-3.5-turbo"
        assert call["temperature"] == 0.7
        assert call["api_key"] is None

    @pytest.mark.asyncio
    async def test_persists_full_conversation_on_completion(self, gateway, store):
        chunks = await gateway.stream([ChatTurn(role="user", content="Hi")])
        assert "".join(await _collect(chunks)) == "Hello there!"

        writes = store.conversation_writes()
        assert len(writes) == 1
        _, key, record = writes[0]
        messages = json.loads(record["messages"])
        assert messages[-1] == {"role": "assistant", "content": "Hello there!"}
        assert messages[1] == {"role": "user", "content": "Hi"}
        assert record["title"] == PERSONA_PROMPT[:100]
        assert record["title"] != "Hi"
        assert key == f"chat:{record['id']}"
        assert record["path"] == f"/chat/{record['id']}"

    @pytest.mark.asyncio
    async def test_indexes_conversation_by_user(self, gateway, store):
        await _collect(await gateway.stream([ChatTurn(role="user", content="Hi")]))

        _, _, record = store.conversation_writes()[0]
        index_writes = [w for w in store.writes if w[0] == "zadd"]
        assert index_writes == [
            ("zadd", f"user:chat:{record['userId']}", {f"chat:{record['id']}": record["createdAt"]})
        ]

    @pytest.mark.asyncio
    async def test_each_call_gets_its_own_user_id(self, gateway, store):
        for _ in range(2):
            await _collect(await gateway.stream([ChatTurn(role="user", content="Hi")]))
        user_ids = {record["userId"] for _, _, record in store.conversation_writes()}
        assert len(user_ids) == 2

    @pytest.mark.asyncio
    async def test_preview_token_applies_to_one_call_only(self, gateway, provider):
        await _collect(await gateway.stream([ChatTurn(role="user", content="Hi")], preview_token="sk-preview"))
        await _collect(await gateway.stream([ChatTurn(role="user", content="Hi")]))

        assert provider.calls[0]["api_key"] == "sk-preview"
        assert provider.calls[1]["api_key"] is None

    @pytest.mark.asyncio
    async def test_empty_messages_send_persona_alone(self, gateway, provider, store):
        chunks = await gateway.stream([])
        assert "".join(await _collect(chunks)) == "Hello there!"

        assert provider.calls[0]["messages"] == [ChatTurn(role="system", content=PERSONA_PROMPT)]
        _, _, record = store.conversation_writes()[0]
        assert json.loads(record["messages"]) == [
            {"role": "system", "content": PERSONA_PROMPT},
            {"role": "assistant", "content": "Hello there!"},
        ]

    @pytest.mark.asyncio
    async def test_reply_stream_carries_stored_ids(self, gateway, history):
        chunks = await gateway.stream([ChatTurn(role="user", content="Hi")])
        chat_id, user_id = chunks.chat_id, chunks.user_id
        assert await history.get(chat_id) is None

        await _collect(chunks)

        stored = await history.get(chat_id)
        assert stored is not None
        assert stored.user_id == user_id
        assert [c.id for c in await history.list_for_user(user_id)] == [chat_id]

    @pytest.mark.asyncio
    async def test_open_failure_propagates_without_write(self, history, store):
        provider = ScriptedProvider(open_error=UpstreamError("Incorrect API key", status_code=401))
        gateway = CompletionGateway(provider, history)

        with pytest.raises(UpstreamError) as exc_info:
            await gateway.stream([ChatTurn(role="user", content="Hi")])
        assert exc_info.value.status_code == 401
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_mid_stream_failure_skips_persistence(self, history, store):
        gateway = CompletionGateway(ScriptedProvider(fail_after=2), history)
        chunks = await gateway.stream([ChatTurn(role="user", content="Hi")])

        received = []
        with pytest.raises(UpstreamError):
            async for chunk in chunks:
                received.append(chunk)

        assert received == ["Hello", " there"]
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_abandoned_stream_skips_persistence(self, gateway, store):
        chunks = await gateway.stream([ChatTurn(role="user", content="Hi")])
        assert await chunks.__anext__() == "Hello"
        await chunks.aclose()
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_store_failure_is_logged_not_raised(self, gateway, store, caplog):
        store.fail_writes = True
        with caplog.at_level(logging.ERROR, logger="outline_chat.gateway"):
            chunks = await gateway.stream([ChatTurn(role="user", content="Hi")])
            assert "".join(await _collect(chunks)) == "Hello there!"

        assert "Failed to persist conversation" in caplog.text

    @pytest.mark.asyncio
    async def test_conversation_readable_after_completion(self, gateway, store):
        await _collect(await gateway.stream([ChatTurn(role="user", content="Hi")]))
        _, _, record = store.conversation_writes()[0]

        conversation = await ConversationHistory(store).get(record["id"])
        assert conversation is not None
        assert conversation.messages[-1] == ChatTurn(role="assistant", content="Hello there!")
        assert len(conversation.messages) == 3

    @pytest.mark.asyncio
    async def test_close_releases_provider_and_store(self, gateway, provider):
        await gateway.close()
        assert provider.closed is True
