"""FastAPI web server for outline-chat."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse, Response, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from .backends import create_provider
from .config import get_model, get_openai_api_key, get_openai_base_url, get_store_url, get_temperature
from .core import ChatTurn, Conversation
from .errors import MissingCredentialError, UpstreamError
from .export import conversation_to_json, conversation_to_markdown
from .gateway import CompletionGateway
from .history import ConversationHistory
from .storage import create_store
from .transcript import CURSOR, render_page, render_turn

logger = logging.getLogger(__name__)

# Gateway cache (populated on first request)
_gateway: CompletionGateway | None = None


def get_gateway() -> CompletionGateway:
    """Lazily build and cache the gateway from environment settings."""
    global _gateway
    if _gateway is None:
        provider = create_provider(
            "openai",
            api_key=get_openai_api_key(),
            base_url=get_openai_base_url(),
        )
        store = create_store(get_store_url())
        _gateway = CompletionGateway(
            provider,
            ConversationHistory(store),
            model=get_model(),
            temperature=get_temperature(),
        )
        logger.info("Gateway ready (model=%s, store=%s)", _gateway.model, store.backend_type)
    return _gateway


def get_history(gateway: CompletionGateway = Depends(get_gateway)) -> ConversationHistory:
    return gateway.history


@asynccontextmanager
async def lifespan(_app: FastAPI):
    global _gateway
    yield
    if _gateway is not None:
        await _gateway.close()
        _gateway = None


app = FastAPI(title="outline-chat", version="0.1.0", lifespan=lifespan)


class ChatRequest(BaseModel):
    """Body of a chat submission."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatTurn] = Field(default_factory=list)
    preview_token: str | None = Field(default=None, alias="previewToken")


def _chat_summary(conversation: Conversation) -> dict:
    return {
        "id": conversation.id,
        "title": conversation.title,
        "createdAt": conversation.created_at,
        "path": conversation.path,
        "messageCount": len(conversation.messages),
    }


async def _load(history: ConversationHistory, chat_id: str) -> Conversation:
    conversation = await history.get(chat_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


# ── Routes ───────────────────────────────────────────────────────


@app.get("/")
async def index():
    """Serve the frontend."""
    html_path = Path(__file__).parent / "static" / "index.html"
    if not html_path.exists():
        raise HTTPException(status_code=404, detail="Frontend not found")
    return HTMLResponse(html_path.read_text(encoding="utf-8"))


@app.post("/api/chat")
async def post_chat(body: ChatRequest, gateway: CompletionGateway = Depends(get_gateway)):
    """Stream the assistant's reply to the submitted conversation as plain text."""
    try:
        chunks = await gateway.stream(body.messages, preview_token=body.preview_token)
    except MissingCredentialError as e:
        logger.error("Chat request rejected: %s", e)
        raise HTTPException(status_code=401, detail=str(e))
    except UpstreamError as e:
        logger.error("Upstream completion failed (%d): %s", e.status_code, e)
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return StreamingResponse(
        chunks,
        media_type="text/plain; charset=utf-8",
        headers={"X-Chat-Id": chunks.chat_id, "X-User-Id": chunks.user_id},
    )


class RenderRequest(BaseModel):
    """A turn to render, optionally still streaming."""

    turn: ChatTurn
    streaming: bool = False


@app.post("/api/render")
async def render(body: RenderRequest):
    """Render one turn to transcript HTML; a streaming turn ends with the cursor."""
    turn = body.turn
    if body.streaming:
        turn = turn.with_content(f"{turn.content}`{CURSOR}`")
    return HTMLResponse(render_turn(turn))


@app.get("/api/chats/{user_id}")
async def get_chats(
    user_id: str,
    limit: int = Query(50, ge=1, le=1000),
    history: ConversationHistory = Depends(get_history),
):
    """Return a user's conversations, newest first."""
    conversations = await history.list_for_user(user_id, limit=limit)
    return {
        "total": len(conversations),
        "chats": [_chat_summary(c) for c in conversations],
    }


@app.get("/api/chat/{chat_id}")
async def get_chat(chat_id: str, history: ConversationHistory = Depends(get_history)):
    """Return a stored conversation with all its messages."""
    conversation = await _load(history, chat_id)
    return conversation.to_dict()


@app.delete("/api/chat/{chat_id}", status_code=204)
async def delete_chat(chat_id: str, history: ConversationHistory = Depends(get_history)):
    if not await history.delete(chat_id):
        raise HTTPException(status_code=404, detail="Conversation not found")
    return Response(status_code=204)


@app.get("/chat/{chat_id}")
async def view_chat(chat_id: str, history: ConversationHistory = Depends(get_history)):
    """Render a stored conversation as an HTML transcript."""
    conversation = await _load(history, chat_id)
    return HTMLResponse(render_page(conversation.title, conversation.messages))


@app.get("/api/export/{chat_id}")
async def export_chat(
    chat_id: str,
    format: str = Query("md", description="Export format: md or json"),
    history: ConversationHistory = Depends(get_history),
):
    """Export a conversation as Markdown or JSON."""
    conversation = await _load(history, chat_id)

    safe_title = "".join(c if c.isalnum() or c in "-_ " else "" for c in conversation.title)[:50]
    safe_title = safe_title.strip() or conversation.id

    if format == "json":
        content = conversation_to_json(conversation)
        return Response(
            content=content,
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{safe_title}.json"'},
        )
    else:
        content = conversation_to_markdown(conversation)
        return Response(
            content=content,
            media_type="text/markdown",
            headers={"Content-Disposition": f'attachment; filename="{safe_title}.md"'},
        )
