"""Global pytest configuration and shared fixtures for the code-base tests."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from schemas.chat_schemas import ChatMessage


@pytest.fixture
def client():
    """Return a TestClient bound to the FastAPI application."""
    from main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def assistant_message():
    return ChatMessage(
        id="m-assistant",
        role="assistant",
        content="**Hello** <there>",
        timestamp=datetime(2024, 5, 1, 9, 5, 0),
    )


@pytest.fixture
def user_message():
    return ChatMessage(
        id="m-user",
        role="user",
        content="**not rendered** <b>raw</b>",
        timestamp=datetime(2024, 5, 1, 9, 4, 0),
    )
