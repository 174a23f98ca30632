"""
chat_client.py
--------------
Async HTTP client for the chat backend (auth, conversation CRUD, message send).

The bearer credential is part of the client value: every request carries the
instance's own `Authorization` header and no shared default headers are ever
mutated, so clients for different sessions can run concurrently.
"""

import logging
from typing import Any, List, Optional

import httpx

from config import settings
from schemas.chat_schemas import AuthResult, Conversation, SendMessageResult

logger = logging.getLogger(__name__)


class ChatApiError(Exception):
    """Raised when the chat backend rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ChatApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.CHAT_API_BASE_URL).rstrip("/")
        self.token = token
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.CHAT_API_TIMEOUT,
            transport=transport,
        )

    def with_token(self, token: Optional[str]) -> "ChatApiClient":
        """Return a client for another credential sharing this client's connection pool."""
        return ChatApiClient(self.base_url, token, http=self._http)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "ChatApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    async def login(self, email: str, password: str) -> AuthResult:
        data = await self._request(
            "POST", "/api/auth/login",
            json={"email": email, "password": password},
            fallback="Login failed",
        )
        return AuthResult.model_validate(data)

    async def register(self, username: str, email: str, password: str) -> AuthResult:
        data = await self._request(
            "POST", "/api/auth/register",
            json={"username": username, "email": email, "password": password},
            fallback="Registration failed",
        )
        return AuthResult.model_validate(data)

    async def me(self) -> dict[str, Any]:
        data = await self._request("GET", "/api/auth/me", fallback="Session expired")
        return (data or {}).get("user") or {}

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------
    async def list_conversations(self) -> List[Conversation]:
        data = await self._request(
            "GET", "/api/chat/conversations", fallback="Failed to load conversations"
        )
        return [Conversation.model_validate(item) for item in data or []]

    async def create_conversation(self, title: str = "New Chat") -> Conversation:
        data = await self._request(
            "POST", "/api/chat/conversations",
            json={"title": title},
            fallback="Failed to create conversation",
        )
        return Conversation.model_validate(data)

    async def get_conversation(self, conversation_id: str) -> Conversation:
        data = await self._request(
            "GET", f"/api/chat/conversations/{conversation_id}",
            fallback="Failed to load conversation",
        )
        return Conversation.model_validate(data)

    async def send_message(self, conversation_id: str, content: str) -> SendMessageResult:
        data = await self._request(
            "POST", f"/api/chat/conversations/{conversation_id}/message",
            json={"content": content},
            fallback="Failed to send message",
        )
        return SendMessageResult.model_validate(data)

    async def rename_conversation(self, conversation_id: str, title: str) -> None:
        await self._request(
            "PUT", f"/api/chat/conversations/{conversation_id}",
            json={"title": title},
            fallback="Failed to rename conversation",
        )

    async def delete_conversation(self, conversation_id: str) -> None:
        await self._request(
            "DELETE", f"/api/chat/conversations/{conversation_id}",
            fallback="Failed to delete conversation",
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self, method: str, path: str, *, json: Any = None, fallback: str
    ) -> Any:
        try:
            response = await self._http.request(
                method, path, json=json, headers=self._headers()
            )
        except httpx.RequestError as e:
            logger.error("Chat API unreachable (%s %s): %s", method, path, e)
            raise ChatApiError(f"{fallback}: chat service unreachable", 503) from e

        if response.is_error:
            message = _error_message(response) or fallback
            logger.warning(
                "Chat API %s %s failed with %s: %s",
                method, path, response.status_code, message,
            )
            raise ChatApiError(message, response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ChatApiError(f"{fallback}: invalid response from chat service", 502) from e


def _error_message(response: httpx.Response) -> Optional[str]:
    """Pull the backend's `error` field out of a failed response, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None
