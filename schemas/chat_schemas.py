"""schemas/chat_schemas.py
=========================
Chat payloads exchanged with the chat backend and the render endpoints.

Backend payloads use Mongo-style camelCase keys (`_id`, `userMessage`,
`updatedAt`); the models accept either the alias or the field name.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """A single message owned by a conversation."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    role: Literal["user", "assistant"]
    content: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)


class Conversation(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    title: str = "New Chat"
    messages: List[ChatMessage] = Field(default_factory=list)
    message_count: int = Field(0, alias="messageCount")
    last_message: str = Field("", alias="lastMessage")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")


class SendMessageResult(BaseModel):
    """Backend reply to a sent message: both stored messages plus the (possibly new) title."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_message: ChatMessage = Field(..., alias="userMessage")
    assistant_message: ChatMessage = Field(..., alias="assistantMessage")
    title: str


class AuthResult(BaseModel):
    token: str
    user: dict[str, Any] = Field(default_factory=dict)


class RenderRequest(BaseModel):
    # Length is enforced by the renderer so oversized input gets a 413 with a preview.
    content: str = Field("", description="Raw assistant markup")


class RenderResult(BaseModel):
    html: str
    truncated: bool = False


class DisplayMessageRequest(BaseModel):
    message: ChatMessage
    pending: bool = Field(False, description="A send is outstanding for this conversation")


class DisplayMessage(BaseModel):
    id: str
    role: Literal["user", "assistant"]
    content: str = Field(..., description="Raw content; the copy-to-clipboard target")
    html: Optional[str] = Field(None, description="Rendered fragment, assistant messages only")
    timestamp: Optional[str] = None
    time_label: str = ""
    truncated: bool = False
    pending: bool = False
