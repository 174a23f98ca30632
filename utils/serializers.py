"""
serializers.py
-------------
Provides standardized functions for serializing chat data to dictionaries.
Ensures consistent response formats across endpoints.

The display serializer is where the user/assistant trust boundary lives:
assistant content is rendered to HTML, user content is passed through as
raw text for the client to show verbatim. User text is never rendered.
"""

import logging
from datetime import datetime, date
from typing import Any, Iterable, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel

from schemas.chat_schemas import ChatMessage
from utils.message_render import MAX_INPUT_CHARS, render_preview
from utils.safe_url import DEFAULT_ALLOWED_SCHEMES

logger = logging.getLogger(__name__)


def serialize_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Convert datetime to ISO format string"""
    if dt is None:
        return None
    return dt.isoformat()


def serialize_uuid(id_value: Any) -> Optional[str]:
    """Convert UUID to string if not None"""
    if id_value is not None:
        return str(id_value)
    return None


def serialize_message_for_display(
    message: ChatMessage,
    *,
    pending: bool = False,
    max_chars: int = MAX_INPUT_CHARS,
    allowed_schemes: Iterable[str] = DEFAULT_ALLOWED_SCHEMES,
) -> dict[str, Any]:
    """
    Serialize a message for the chat display surface.

    Args:
        message: The message to display
        pending: Whether a send is outstanding (drives the typing indicator)
        max_chars: Renderer input limit; longer assistant content is truncated
        allowed_schemes: Link schemes the renderer may emit

    Returns:
        Dictionary with `content` (raw, copy target), `html` (assistant only),
        timestamps and the `truncated` / `pending` flags.
    """
    html = None
    truncated = False
    if message.role == "assistant":
        html, truncated = render_preview(
            message.content, max_chars=max_chars, allowed_schemes=allowed_schemes
        )
        if truncated:
            logger.warning(
                "Assistant message %s truncated for display (%d > %d chars)",
                message.id,
                len(message.content),
                max_chars,
            )

    return {
        "id": serialize_uuid(message.id),
        "role": message.role,
        "content": message.content,
        "html": html,
        "timestamp": serialize_datetime(message.timestamp),
        "time_label": message.timestamp.strftime("%H:%M"),
        "truncated": truncated,
        "pending": pending,
    }


def to_serialisable(obj):  # noqa: N802  (keep snake-case for local helper)
    """Recursively convert models / collections to JSON-safe data."""
    # primitives already OK
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, (datetime, date)):
        return serialize_datetime(obj) if isinstance(obj, datetime) else obj.isoformat()
    if isinstance(obj, UUID):
        return serialize_uuid(obj)

    # pydantic models → their JSON-mode dump
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")

    # list / tuple / set
    if isinstance(obj, (list, tuple, set)):
        return [to_serialisable(x) for x in obj]

    # mapping / dict
    if isinstance(obj, Mapping):
        return {k: to_serialisable(v) for k, v in obj.items()}

    # fallback: best-effort string representation
    return str(obj)
