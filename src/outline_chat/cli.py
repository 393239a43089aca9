"""CLI entry point for outline-chat."""

import asyncio
import logging

import click
import uvicorn

from .backends import create_provider
from .config import get_model, get_openai_api_key, get_openai_base_url, get_store_url, get_temperature
from .errors import MissingCredentialError, UpstreamError
from .gateway import CompletionGateway
from .history import ConversationHistory
from .session import ChatSession
from .storage import create_store


@click.group()
@click.option("--log-level", default="WARNING", help="Logging level.")
def main(log_level: str):
    """Build a book outline through conversation with a language model."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--port", default=8080, help="Port to serve on.")
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
def serve(port: int, host: str):
    """Start the web interface."""
    click.echo(f"Starting outline-chat on http://{host}:{port}")
    uvicorn.run("outline_chat.server:app", host=host, port=port, reload=False)


@main.command()
@click.option("--api-key", envvar="OPENAI_API_KEY", help="Completion API key.")
@click.option("--model", default=None, help="Model identifier.")
def chat(api_key: str | None, model: str | None):
    """Chat in the terminal; `/edit N` rewrites a message, an empty line quits."""
    asyncio.run(_chat(api_key or get_openai_api_key(), model or get_model()))


async def _echo_reply(replies) -> None:
    """Print a streamed reply as it grows."""
    shown = 0
    try:
        async for reply in replies:
            click.echo(reply.content[shown:], nl=False)
            shown = len(reply.content)
    except MissingCredentialError as e:
        click.echo(f"\nError: {e}", err=True)
        return
    except UpstreamError as e:
        click.echo(f"\nError ({e.status_code}): {e}", err=True)
        return
    click.echo()


async def _edit(session: ChatSession, arg: str) -> None:
    """Handle ``/edit N``: rewrite the Nth user message and regenerate."""
    user_turns = [t for t in session.turns if t.role == "user"]
    if not arg.isdigit() or not 1 <= int(arg) <= len(user_turns):
        click.echo(f"Usage: /edit N, where N is 1-{len(user_turns)}", err=True)
        return
    editor = session.editor_for(user_turns[int(arg) - 1])
    editor.start_edit()
    if not editor.save(click.prompt("edit", default=editor.content)):
        editor.cancel()
        click.echo("Edit discarded: the message is blank or unchanged.", err=True)
        return
    await _echo_reply(session.regenerate())


async def _chat(api_key: str | None, model: str) -> None:
    provider = create_provider("openai", api_key=api_key, base_url=get_openai_base_url())
    history = ConversationHistory(create_store(get_store_url()))
    gateway = CompletionGateway(provider, history, model=model, temperature=get_temperature())
    session = ChatSession(gateway)
    try:
        while True:
            text = click.prompt("you", default="", show_default=False)
            if not text.strip():
                break
            if text.startswith("/edit"):
                await _edit(session, text.removeprefix("/edit").strip())
                continue
            await _echo_reply(session.submit(text))
    finally:
        await gateway.close()
