"""
message_render.py
-----------------
Utility for rendering assistant markdown to safe HTML for UI display.

- Parses the constrained chat markup into typed nodes (utils.markup_blocks,
  utils.markup_inline) and emits HTML with every text leaf escaped.
- Uses `bleach` to clean the emitted fragment, whitelisting safe tags only.
- Pure: no configuration, environment or I/O. Limits are keyword arguments.

Only assistant messages go through here. User messages are shown verbatim
by the client and must never be fed to `render()`.
"""

import html
from typing import Iterable, List, Tuple

import bleach

from utils.markup_blocks import parse_blocks
from utils.markup_nodes import (
    Block,
    Blockquote,
    BulletList,
    CodeBlock,
    CodeSpan,
    Emphasis,
    Heading,
    Inline,
    Link,
    OrderedList,
    Paragraph,
    Strong,
    Text,
)
from utils.safe_url import DEFAULT_ALLOWED_SCHEMES

__all__ = [
    "ALLOWED_TAGS",
    "ALLOWED_ATTRS",
    "MAX_INPUT_CHARS",
    "RenderError",
    "RenderInputTooLarge",
    "escape_html",
    "render",
    "render_markdown_to_html",
    "render_preview",
]

MAX_INPUT_CHARS = 50_000

ALLOWED_TAGS = frozenset({
    "p", "br", "strong", "em", "code", "pre", "h1", "h2", "h3",
    "blockquote", "ul", "ol", "li", "a",
})
ALLOWED_ATTRS = {
    "a": ["href", "target", "rel"],
    "code": ["class"],
}


class RenderError(Exception):
    """Base exception for rendering failures surfaced to callers."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RenderInputTooLarge(RenderError):
    """Raw content is longer than the renderer accepts."""

    def __init__(self, length: int, limit: int):
        self.length = length
        self.limit = limit
        super().__init__(
            f"Message content is {length} characters; at most {limit} can be rendered",
            413,
        )


def escape_html(text: str) -> str:
    """Escape &, < and > (ampersand first)."""
    return html.escape(text, quote=False)


def _escape_attr(value: str) -> str:
    return html.escape(value, quote=True)


def render(
    raw: str,
    *,
    max_chars: int = MAX_INPUT_CHARS,
    allowed_schemes: Iterable[str] = DEFAULT_ALLOWED_SCHEMES,
) -> str:
    """
    Render chat markup to an HTML fragment restricted to ALLOWED_TAGS.

    Malformed markup never raises; it falls through to escaped text.

    Raises:
        RenderInputTooLarge: if `raw` is longer than `max_chars`.
    """
    raw = raw or ""
    if len(raw) > max_chars:
        raise RenderInputTooLarge(len(raw), max_chars)

    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    schemes = sorted({s.lower() for s in allowed_schemes})
    fragment = "\n".join(_emit_block(block) for block in parse_blocks(text, schemes))
    if not fragment:
        return ""

    return bleach.clean(
        fragment,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRS,
        protocols=schemes,
        strip=True,
    )


# Alias kept for existing imports.
render_markdown_to_html = render


def render_preview(
    raw: str,
    *,
    max_chars: int = MAX_INPUT_CHARS,
    allowed_schemes: Iterable[str] = DEFAULT_ALLOWED_SCHEMES,
) -> Tuple[str, bool]:
    """
    Render at most `max_chars` characters of `raw`.

    Returns the fragment and whether the content had to be truncated.
    """
    raw = raw or ""
    truncated = len(raw) > max_chars
    if truncated:
        raw = raw[:max_chars]
    return render(raw, max_chars=max_chars, allowed_schemes=allowed_schemes), truncated


# --------------------------------------------------------------------------
# Emission
# --------------------------------------------------------------------------
def _emit_block(block: Block) -> str:
    if isinstance(block, CodeBlock):
        cls = f' class="lang-{_escape_attr(block.language)}"' if block.language else ""
        return f"<pre><code{cls}>{escape_html(block.body)}</code></pre>"
    if isinstance(block, Heading):
        return f"<h{block.level}>{_emit_inline(block.children)}</h{block.level}>"
    if isinstance(block, Blockquote):
        return f"<blockquote>{_emit_lines(block.lines)}</blockquote>"
    if isinstance(block, BulletList):
        return f"<ul>{_emit_items(block.items)}</ul>"
    if isinstance(block, OrderedList):
        return f"<ol>{_emit_items(block.items)}</ol>"
    if isinstance(block, Paragraph):
        return f"<p>{_emit_lines(block.lines)}</p>"
    raise TypeError(f"Unknown block node: {block!r}")


def _emit_lines(lines: List[List[Inline]]) -> str:
    return "<br>".join(_emit_inline(line) for line in lines)


def _emit_items(items: List[List[Inline]]) -> str:
    return "".join(f"<li>{_emit_inline(item)}</li>" for item in items)


def _emit_inline(nodes: List[Inline]) -> str:
    out = []
    for node in nodes:
        if isinstance(node, Text):
            out.append(escape_html(node.value))
        elif isinstance(node, CodeSpan):
            out.append(f"<code>{escape_html(node.value)}</code>")
        elif isinstance(node, Strong):
            out.append(f"<strong>{_emit_inline(node.children)}</strong>")
        elif isinstance(node, Emphasis):
            out.append(f"<em>{_emit_inline(node.children)}</em>")
        elif isinstance(node, Link):
            out.append(
                f'<a href="{_escape_attr(node.href.value)}" target="_blank" '
                f'rel="noopener noreferrer">{_emit_inline(node.children)}</a>'
            )
        else:
            raise TypeError(f"Unknown inline node: {node!r}")
    return "".join(out)
