"""
utils/sentry_utils.py
---------------------
Sentry error reporting for the render service.

• `configure_sentry()` is called once from utils.bootstrap, after logging is
  set up, and is a no-op unless SENTRY_ENABLED is truthy and a DSN is given.
• Events are scrubbed before they leave the process: credentials, cookies and
  every raw message body (`content`) are replaced with "[FILTERED]".
• Health-check transactions are dropped.

Nothing here initialises Sentry at import time.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.types import Event, Hint

from utils.logging_config import request_id_var

__all__ = [
    "configure_sentry",
    "filter_sensitive_event",
    "filter_transaction",
    "capture_exception_with_context",
]

logger = logging.getLogger(__name__)

FILTERED = "[FILTERED]"
SENSITIVE_KEYS = frozenset({
    "password",
    "token",
    "secret",
    "api_key",
    "authorization",
    "cookie",
    "session",
    "content",
})
IGNORED_TRANSACTIONS = frozenset({"/health", "/favicon.ico"})

_TRUTHY = {"1", "true", "yes"}


def _is_sensitive(key: Any) -> bool:
    return isinstance(key, str) and any(s in key.lower() for s in SENSITIVE_KEYS)


def _scrub(value: Any) -> Any:
    """Recursively replace values stored under sensitive keys."""
    if isinstance(value, dict):
        return {k: FILTERED if _is_sensitive(k) else _scrub(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_scrub(v) for v in value]
    return value


def filter_sensitive_event(event: Event, _hint: Optional[Hint] = None) -> Optional[Event]:
    """`before_send` hook: scrub request data, headers, contexts and extras."""
    for section in ("request", "contexts", "extra"):
        if section in event:
            event[section] = _scrub(event[section])  # type: ignore[literal-required]
    return event


def filter_transaction(event: Event, _hint: Optional[Hint] = None) -> Optional[Event]:
    """`before_send_transaction` hook: drop health checks, scrub the rest."""
    name = str(event.get("transaction", ""))
    url = str(event.get("request", {}).get("url", ""))
    if any(name == path or url.endswith(path) for path in IGNORED_TRANSACTIONS):
        return None
    return filter_sensitive_event(event, _hint)


def configure_sentry(
    *,
    dsn: str,
    environment: str = "production",
    release: str | None = None,
    traces_sample_rate: float = 0.02,
) -> bool:
    """
    Initialise Sentry. Returns True when it was enabled.

    Env flags respected
    -------------------
    • SENTRY_ENABLED (default: False)
    • SENTRY_DEBUG   (default: False)
    """
    if os.getenv("SENTRY_ENABLED", "").lower() not in _TRUTHY:
        logger.info("Sentry disabled via env flag; skipping initialisation.")
        return False
    if not dsn:
        logger.warning("SENTRY_ENABLED is set but SENTRY_DSN is empty; skipping Sentry.")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            FastApiIntegration(transaction_style="endpoint"),
            AsyncioIntegration(),
        ],
        before_send=filter_sensitive_event,
        before_send_transaction=filter_transaction,
        debug=os.getenv("SENTRY_DEBUG", "").lower() in _TRUTHY,
        send_default_pii=False,
    )
    logger.info("Sentry initialised for %s (%s)", release, environment)
    return True


def capture_exception_with_context(exc: BaseException) -> None:
    """Report a handled exception, tagged with the current request id."""
    with sentry_sdk.new_scope() as scope:
        rid = request_id_var.get()
        if rid:
            scope.set_tag("request_id", rid)
        scope.capture_exception(exc)
