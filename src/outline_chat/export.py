"""Export stored conversations to Markdown and JSON formats."""

import json
from datetime import datetime, timezone

from .core import Conversation


def _created(conversation: Conversation) -> datetime:
    return datetime.fromtimestamp(conversation.created_at / 1000, tz=timezone.utc)


def conversation_to_markdown(conversation: Conversation, include_system: bool = False) -> str:
    """Export a conversation as clean Markdown."""
    lines = [f"# {conversation.title.splitlines()[0] if conversation.title else conversation.id}", ""]

    lines.append(f"**Conversation:** {conversation.id}")
    lines.append(f"**Created:** {_created(conversation).isoformat()}")
    lines.append(f"**Messages:** {len(conversation.messages)}")
    lines.extend(["", "---", ""])

    for msg in conversation.messages:
        if msg.role == "system" and not include_system:
            continue
        lines.append(f"## {msg.role.capitalize()}")
        lines.append("")
        lines.append(msg.content)
        lines.extend(["", "---", ""])

    return "\n".join(lines)


def conversation_to_json(conversation: Conversation) -> str:
    """Export a conversation as structured JSON."""
    data = conversation.to_dict()
    data["createdAtIso"] = _created(conversation).isoformat()
    return json.dumps(data, indent=2, ensure_ascii=False)
