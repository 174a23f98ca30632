"""
Routes for rendering chat messages for display.
Assistant markup is rendered to a safe HTML fragment; user messages are
returned untouched for verbatim display.
"""

import asyncio
import logging

from fastapi import APIRouter

from config import settings
from schemas.chat_schemas import (
    DisplayMessage,
    DisplayMessageRequest,
    RenderRequest,
    RenderResult,
)
from schemas.common import StandardResponse
from utils.message_render import RenderInputTooLarge, render, render_preview
from utils.response_utils import create_standard_response
from utils.serializers import serialize_message_for_display


logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/api/render",
    response_model=StandardResponse,
    responses={413: {"model": StandardResponse, "description": "Content over the render limit"}},
)
async def render_message(payload: RenderRequest):
    """
    Render raw assistant markup.

    Oversized content is answered with 413 and a preview of the leading
    characters so the client can still show something.
    """
    # Rendering is CPU-bound; keep it off the event loop.
    try:
        html = await asyncio.to_thread(
            render,
            payload.content,
            max_chars=settings.RENDER_MAX_INPUT_CHARS,
            allowed_schemes=settings.RENDER_ALLOWED_SCHEMES,
        )
    except RenderInputTooLarge as e:
        logger.warning("Render rejected: %d chars > limit %d", e.length, e.limit)
        preview, _ = await asyncio.to_thread(
            render_preview,
            payload.content,
            max_chars=settings.RENDER_MAX_INPUT_CHARS,
            allowed_schemes=settings.RENDER_ALLOWED_SCHEMES,
        )
        return await create_standard_response(
            RenderResult(html=preview, truncated=True),
            message=e.message,
            success=False,
            status_code=e.status_code,
        )

    return await create_standard_response(RenderResult(html=html), message="Rendered")


@router.post("/api/messages/display", response_model=StandardResponse)
async def display_message(payload: DisplayMessageRequest):
    """Serialize one message for the chat surface (html for assistant only)."""
    serialized = await asyncio.to_thread(
        serialize_message_for_display,
        payload.message,
        pending=payload.pending,
        max_chars=settings.RENDER_MAX_INPUT_CHARS,
        allowed_schemes=settings.RENDER_ALLOWED_SCHEMES,
    )
    data = DisplayMessage.model_validate(serialized)
    return await create_standard_response(data)
