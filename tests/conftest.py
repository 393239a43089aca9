"""Shared test fixtures for outline-chat."""

import pytest

from outline_chat.errors import UpstreamError
from outline_chat.gateway import CompletionGateway
from outline_chat.history import ConversationHistory
from outline_chat.provider import CompletionProvider
from outline_chat.storage import InMemoryStore


class ScriptedProvider(CompletionProvider):
    """Completion provider that replays fixed chunks.

    ``fail_after`` raises an ``UpstreamError`` once that many chunks have
    been yielded; ``open_error`` is raised when the request is opened.
    """

    name = "scripted"

    def __init__(self, chunks=("Hello", " there", "!"), fail_after=None, open_error=None):
        self.chunks = list(chunks)
        self.fail_after = fail_after
        self.open_error = open_error
        self.calls = []
        self.closed = False

    async def stream_completion(self, messages, *, model, temperature=0.7, api_key=None):
        self.calls.append({
            "messages": list(messages),
            "model": model,
            "temperature": temperature,
            "api_key": api_key,
        })
        if self.open_error is not None:
            raise self.open_error
        return self._generate()

    async def _generate(self):
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i == self.fail_after:
                raise UpstreamError("connection reset by peer", status_code=502)
            yield chunk

    async def close(self):
        self.closed = True


class RecordingStore(InMemoryStore):
    """In-memory store that logs writes and can be told to fail them."""

    def __init__(self):
        super().__init__()
        self.writes = []
        self.fail_writes = False

    async def hset(self, key, mapping):
        if self.fail_writes:
            raise ConnectionError("store unavailable")
        self.writes.append(("hset", key, dict(mapping)))
        await super().hset(key, mapping)

    async def zadd(self, key, mapping):
        if self.fail_writes:
            raise ConnectionError("store unavailable")
        self.writes.append(("zadd", key, dict(mapping)))
        await super().zadd(key, mapping)

    def conversation_writes(self):
        return [w for w in self.writes if w[0] == "hset"]


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def history(store):
    return ConversationHistory(store)


@pytest.fixture
def gateway(provider, history):
    return CompletionGateway(provider, history)
