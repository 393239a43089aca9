"""Tests for the terminal chat command."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import ScriptedProvider
from outline_chat.cli import main
from outline_chat.persona import PERSONA_PROMPT


@pytest.fixture
def provider(monkeypatch):
    monkeypatch.setenv("OUTLINE_CHAT_STORE_URL", "memory://")
    provider = ScriptedProvider()
    with patch("outline_chat.cli.create_provider", return_value=provider):
        yield provider


def _run(text):
    return CliRunner().invoke(main, ["chat", "--api-key", "sk-test"], input=text)


def _sent(call):
    return [(t.role, t.content) for t in call["messages"]]


def test_chat_streams_reply(provider):
    result = _run("Hi\n\n")

    assert result.exit_code == 0, result.output
    assert "Hello there!" in result.output
    assert _sent(provider.calls[0]) == [("system", PERSONA_PROMPT), ("user", "Hi")]
    assert provider.closed is True


def test_edit_rewrites_message_and_regenerates(provider):
    result = _run("Hi\nHow long should it be?\n/edit 1\nHey\n\n")

    assert result.exit_code == 0, result.output
    assert len(provider.calls) == 3
    assert _sent(provider.calls[-1]) == [("system", PERSONA_PROMPT), ("user", "Hey")]


def test_unchanged_edit_is_discarded(provider):
    result = _run("Hi\n/edit 1\n\n\n")

    assert result.exit_code == 0, result.output
    assert "Edit discarded" in result.output
    assert len(provider.calls) == 1


def test_edit_out_of_range(provider):
    result = _run("Hi\n/edit 3\n\n")

    assert result.exit_code == 0, result.output
    assert "Usage: /edit N" in result.output
    assert len(provider.calls) == 1
