"""
Services package initialization.
This module exposes the chat backend client and the per-user conversation session.
"""

__all__ = [
    # Chat backend client
    "ChatApiClient",
    "ChatApiError",
    # Conversation session
    "ConversationSession",
    "ConversationError",
    "SendInProgressError",
]

from .chat_client import ChatApiClient, ChatApiError
from .conversation_service import (
    ConversationError,
    ConversationSession,
    SendInProgressError,
)
