"""
utils/bootstrap.py
------------------
Telemetry start-up for the render service: structured logging first, then
Sentry, so that Sentry's logging integration attaches to configured handlers.

Usage:
    from utils.bootstrap import init_telemetry
    init_telemetry(app_name=..., app_version=..., environment=..., sentry_dsn=...)
"""

import logging
import os
from typing import Optional

from utils.logging_config import init_structured_logging
from utils.sentry_utils import configure_sentry

_TRACE_SAMPLE_RATES = {"production": 0.1, "staging": 0.3}
_DEFAULT_TRACE_SAMPLE_RATE = 0.02


def traces_sample_rate_for(environment: str) -> float:
    return _TRACE_SAMPLE_RATES.get(environment.lower(), _DEFAULT_TRACE_SAMPLE_RATE)


def init_telemetry(
    app_name: Optional[str] = None,
    app_version: Optional[str] = None,
    environment: Optional[str] = None,
    sentry_dsn: Optional[str] = None,
) -> bool:
    """
    Initialize logging and error reporting once per process.

    Missing arguments fall back to the APP_NAME, APP_VERSION, ENV and
    SENTRY_DSN environment variables. Returns whether Sentry was enabled.
    """
    init_structured_logging()
    logger = logging.getLogger(__name__)

    app_name = app_name or os.getenv("APP_NAME", "chat-render")
    app_version = app_version or os.getenv("APP_VERSION", "")
    environment = environment or os.getenv("ENV", "development")
    sample_rate = traces_sample_rate_for(environment)

    sentry_enabled = configure_sentry(
        dsn=sentry_dsn if sentry_dsn is not None else os.getenv("SENTRY_DSN", ""),
        environment=environment,
        release=f"{app_name}@{app_version}" if app_version else app_name,
        traces_sample_rate=sample_rate,
    )

    logger.info("Telemetry initialized", extra={
        "app_name": app_name,
        "environment": environment,
        "sentry_enabled": sentry_enabled,
        "traces_sample_rate": sample_rate,
    })
    return sentry_enabled
