"""
Application Configuration Module (config.py)
--------------------------------------------

Centralized runtime configuration for the render service, sourced from environment variables and `.env` files.
Provides settings for the application identity, Sentry error reporting, CORS rules, renderer limits, and the
chat backend the API client talks to.

Highlights:
- Renderer limits (`RENDER_MAX_INPUT_CHARS`, `RENDER_ALLOWED_SCHEMES`) are passed explicitly to
  `utils.message_render.render()`; the renderer itself never reads this module.
- All settings exposed via the `settings` object for use throughout the app.
"""

import os
from dotenv import load_dotenv
from pathlib import Path

env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=env_path, override=True)


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """
    Runtime settings read once at import time.
    """

    # Application Version
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    APP_NAME = os.getenv("APP_NAME", "chat-render")

    # Debug/Environment
    DEBUG = os.getenv("DEBUG", "False").lower() == "true"
    ENV = os.getenv("ENV", "development")

    # Sentry Configuration (optional)
    SENTRY_DSN = os.getenv("SENTRY_DSN", "")
    SENTRY_ENABLED = os.getenv("SENTRY_ENABLED", "False").lower() == "true"

    # CORS: comma-separated origins, "*" for local development
    CORS_ORIGINS: list[str] = _csv(os.getenv("CORS_ORIGINS", "*"))

    # Renderer limits
    RENDER_MAX_INPUT_CHARS = int(os.getenv("RENDER_MAX_INPUT_CHARS", "50000"))
    RENDER_ALLOWED_SCHEMES: list[str] = _csv(
        os.getenv("RENDER_ALLOWED_SCHEMES", "http,https,mailto")
    )

    # Chat backend reached by services.chat_client
    CHAT_API_BASE_URL = os.getenv("CHAT_API_BASE_URL", "http://localhost:5000")
    CHAT_API_TIMEOUT = float(os.getenv("CHAT_API_TIMEOUT", "30.0"))


settings = Settings()

__all__ = ["settings"]
