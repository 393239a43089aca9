"""HTML rendering of a conversation transcript.

User turns are shown as escaped, pre-wrapped text. Assistant turns go
through markdown-it-py; fenced code blocks are handed to a highlighter
(Pygments by default). While a reply is streaming the client appends a
cursor glyph, which renders as a blinking span instead of inline code.
"""

import html
from collections.abc import Callable, Iterable

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from .core import ChatTurn

CURSOR = "▍"
CURSOR_HTML = f'<span class="cursor">{CURSOR}</span>'

Highlighter = Callable[[str, str], str]

_formatter = HtmlFormatter(cssclass="highlight")


def pygments_highlight(code: str, language: str) -> str:
    """Highlight ``code`` as HTML, falling back to plain text for unknown languages."""
    try:
        lexer = get_lexer_by_name(language) if language else TextLexer()
    except ClassNotFound:
        lexer = TextLexer()
    return highlight(code, lexer, _formatter)


def _unescape_cursor(text: str) -> str:
    return text.replace(f"`{CURSOR}`", CURSOR)


def _build_markdown(highlighter: Highlighter) -> MarkdownIt:
    md = MarkdownIt("commonmark").enable(["table", "strikethrough"])

    def render_code_inline(self, tokens, idx, options, env):
        content = tokens[idx].content
        if content == CURSOR:
            return CURSOR_HTML
        return f"<code>{escapeHtml(_unescape_cursor(content))}</code>"

    def render_fence(self, tokens, idx, options, env):
        token = tokens[idx]
        language = token.info.strip().split(" ")[0] if token.info else ""
        code = _unescape_cursor(token.content).removesuffix("\n")
        body = highlighter(code, language)
        lang_attr = f' data-language="{escapeHtml(language)}"' if language else ""
        return f'<div class="code-block"{lang_attr}>{body}</div>\n'

    md.add_render_rule("code_inline", render_code_inline)
    md.add_render_rule("fence", render_fence)
    return md


_default_markdown = _build_markdown(pygments_highlight)


def render_markdown(text: str, highlighter: Highlighter | None = None) -> str:
    """Render assistant markdown to HTML."""
    md = _default_markdown if highlighter is None else _build_markdown(highlighter)
    return md.render(text)


def render_turn(turn: ChatTurn, highlighter: Highlighter | None = None) -> str:
    """Render one turn as an HTML block styled by role."""
    if turn.role == "assistant":
        body = f'<div class="markdown">{render_markdown(turn.content, highlighter)}</div>'
    else:
        body = f'<div class="plain">{html.escape(turn.content)}</div>'
    id_attr = f' data-id="{html.escape(turn.id)}"' if turn.id else ""
    return f'<div class="message message-{turn.role}"{id_attr}>{body}</div>'


def render_transcript(
    turns: Iterable[ChatTurn],
    highlighter: Highlighter | None = None,
    include_system: bool = False,
) -> str:
    """Render turns in conversation order; system turns are hidden by default."""
    blocks = [
        render_turn(t, highlighter)
        for t in turns
        if include_system or t.role != "system"
    ]
    return "\n".join(blocks)


def render_page(title: str, turns: Iterable[ChatTurn]) -> str:
    """Render a standalone HTML page for a stored conversation."""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{html.escape(title)}</title>"
        "<style>"
        ".message{padding:1rem;border-bottom:1px solid #0001}"
        ".message-assistant{background:#fafafa}"
        ".plain{white-space:pre-wrap}"
        f"{_formatter.get_style_defs('.highlight')}"
        "</style></head>"
        f'<body><main class="transcript">{render_transcript(turns)}</main></body></html>'
    )
