# conversation_service.py
# -----------------------
# Provides a ConversationSession class holding one user's view of their
# conversations (sidebar list, open conversation, last error) and keeping it
# in sync with the chat backend through services.chat_client.
#
# Send contract: at most one in-flight send per conversation, and messages
# are appended only after the backend has stored them (no optimistic copies).

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from schemas.chat_schemas import Conversation, SendMessageResult
from services.chat_client import ChatApiClient, ChatApiError

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 100


class ConversationError(Exception):
    """Base exception for conversation-related errors."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SendInProgressError(ConversationError):
    """A send is already outstanding for this conversation."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(
            f"A message is already being sent in conversation {conversation_id}", 409
        )


def _sort_key(conversation: Conversation) -> float:
    return conversation.updated_at.timestamp() if conversation.updated_at else 0.0


class ConversationSession:
    def __init__(self, client: ChatApiClient):
        self.client = client
        self.conversations: List[Conversation] = []
        self.current: Optional[Conversation] = None
        self.error: Optional[str] = None
        self.loading = False
        self._send_locks: Dict[str, asyncio.Lock] = {}

    def is_sending(self, conversation_id: str) -> bool:
        """True while a send is outstanding; drives the typing indicator."""
        lock = self._send_locks.get(conversation_id)
        return bool(lock and lock.locked())

    async def fetch_conversations(self) -> List[Conversation]:
        self.loading = True
        try:
            self.conversations = await self.client.list_conversations()
        except ChatApiError as e:
            logger.warning("Failed to load conversations: %s", e.message)
            self.error = "Failed to load conversations"
        finally:
            self.loading = False
        return self.conversations

    async def create_conversation(self, title: str = "New Chat") -> Optional[Conversation]:
        try:
            conversation = await self.client.create_conversation(title)
        except ChatApiError as e:
            logger.warning("Failed to create conversation: %s", e.message)
            self.error = "Failed to create conversation"
            return None

        listed = conversation.model_copy(update={"message_count": 0, "last_message": ""})
        self.conversations = [listed, *self.conversations]
        self.current = conversation
        return conversation

    async def load_conversation(self, conversation_id: str) -> Optional[Conversation]:
        self.loading = True
        try:
            self.current = await self.client.get_conversation(conversation_id)
            return self.current
        except ChatApiError as e:
            logger.warning("Failed to load conversation %s: %s", conversation_id, e.message)
            self.error = "Failed to load conversation"
            return None
        finally:
            self.loading = False

    async def rename_conversation(self, conversation_id: str, title: str) -> bool:
        try:
            await self.client.rename_conversation(conversation_id, title)
        except ChatApiError as e:
            logger.warning("Failed to rename conversation %s: %s", conversation_id, e.message)
            self.error = "Failed to rename conversation"
            return False

        self.conversations = [
            c.model_copy(update={"title": title}) if c.id == conversation_id else c
            for c in self.conversations
        ]
        if self.current is not None and self.current.id == conversation_id:
            self.current = self.current.model_copy(update={"title": title})
        return True

    async def delete_conversation(self, conversation_id: str) -> bool:
        try:
            await self.client.delete_conversation(conversation_id)
        except ChatApiError as e:
            logger.warning("Failed to delete conversation %s: %s", conversation_id, e.message)
            self.error = "Failed to delete conversation"
            return False

        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        if self.current is not None and self.current.id == conversation_id:
            self.current = None
        return True

    async def send_message(self, conversation_id: str, content: str) -> SendMessageResult:
        """
        Send `content` to the backend and record both stored messages.

        Raises:
            ConversationError: if `content` is blank or the backend rejects it.
            SendInProgressError: if a send is already outstanding for the conversation.
        """
        if not content or not content.strip():
            raise ConversationError("Message content is empty")

        lock = self._send_locks.setdefault(conversation_id, asyncio.Lock())
        if lock.locked():
            raise SendInProgressError(conversation_id)

        async with lock:
            self.error = None
            try:
                result = await self.client.send_message(conversation_id, content)
            except ChatApiError as e:
                logger.warning("Send failed in conversation %s: %s", conversation_id, e.message)
                self.error = e.message
                raise ConversationError(e.message, e.status_code) from e

            self._record_sent(conversation_id, result)
            return result

    def _record_sent(self, conversation_id: str, result: SendMessageResult) -> None:
        if self.current is not None and self.current.id == conversation_id:
            self.current = self.current.model_copy(update={
                "title": result.title,
                "messages": [*self.current.messages, result.user_message, result.assistant_message],
            })

        now = datetime.now(timezone.utc)
        updated = []
        for c in self.conversations:
            if c.id == conversation_id:
                c = c.model_copy(update={
                    "title": result.title,
                    "last_message": result.assistant_message.content[:PREVIEW_CHARS],
                    "message_count": c.message_count + 2,
                    "updated_at": now,
                })
            updated.append(c)
        self.conversations = sorted(updated, key=_sort_key, reverse=True)
