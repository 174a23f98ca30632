"""
utils/logging_config.py
-----------------------
Structured logging for the render service.

Console output is colourised text; when LOG_FILE is set, a rotating file
receives one JSON object per record. Both handlers share the same filters:
request/trace ids from contextvars, duplicate-message throttling, and
redaction of credentials and raw message bodies.

Environment:
    LOG_LEVEL    root level (default INFO)
    LOG_FILE     optional JSON log path
    LOG_DUP_MAX  identical messages allowed per logger per minute (default 50)
"""

import json
import logging
import os
import re
import sys
import time
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List, Optional, Tuple

from colorama import Fore, Style
from colorama import init as colorama_init

colorama_init()

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "request_id", "trace_id", "_rate_limit_passed"}

# `extra=` keys whose values are raw chat text and must not reach log sinks.
REDACTED_EXTRA_KEYS = frozenset({"content", "raw", "html", "password", "token"})


class ContextFilter(logging.Filter):
    """Copy the current request and trace ids onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.trace_id = trace_id_var.get()
        return True


class RateLimitingFilter(logging.Filter):
    """
    Drop identical messages from the same logger beyond `max_per_minute`
    within a one-minute window.

    One instance is shared by every handler. Each record is counted once
    however many handlers it passes through, and the verdict is reused.
    Logger-level filters do not see records propagated from child loggers,
    so this must stay on the handlers.
    """

    _VERDICT_ATTR = "_rate_limit_passed"

    def __init__(self, max_per_minute: Optional[int] = None, window: float = 60.0):
        super().__init__()
        if max_per_minute is None:
            max_per_minute = int(os.getenv("LOG_DUP_MAX", "50"))
        self.max_per_minute = max_per_minute
        self.window = window
        self._seen: Dict[Tuple[str, str], Tuple[int, float]] = {}
        self._last_prune = 0.0

    def filter(self, record: logging.LogRecord) -> bool:
        verdict = getattr(record, self._VERDICT_ATTR, None)
        if verdict is not None:
            return verdict

        self._prune(record.created)
        key = (record.name, record.getMessage())
        count, started = self._seen.get(key, (0, record.created))
        if record.created - started > self.window:
            count, started = 0, record.created
        count += 1
        self._seen[key] = (count, started)

        verdict = count <= self.max_per_minute
        setattr(record, self._VERDICT_ATTR, verdict)
        return verdict

    def _prune(self, now: float) -> None:
        if now - self._last_prune < self.window:
            return
        self._last_prune = now
        self._seen = {
            key: (count, started)
            for key, (count, started) in self._seen.items()
            if now - started <= self.window
        }


class SensitiveDataFilter(logging.Filter):
    """Redact credentials and addresses from messages, args and extras."""

    PATTERNS: List[Tuple[re.Pattern, str]] = [
        (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), "[EMAIL_REDACTED]"),
        (re.compile(r"\bBearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE), "Bearer [TOKEN_REDACTED]"),
        (re.compile(r"\b[A-Za-z0-9]{32,}\b"), "[TOKEN_REDACTED]"),
    ]

    @classmethod
    def scrub(cls, value: str) -> str:
        for pattern, replacement in cls.PATTERNS:
            value = pattern.sub(replacement, value)
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.scrub(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                self.scrub(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        for key in REDACTED_EXTRA_KEYS & record.__dict__.keys():
            setattr(record, key, "[REDACTED]")
        return True


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}


class CustomJsonFormatter(logging.Formatter):
    """One JSON object per record, with context ids and `extra=` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        for key in ("request_id", "trace_id"):
            if getattr(record, key, None):
                payload[key] = getattr(record, key)
        payload.update(_extras(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ColoredTextFormatter(logging.Formatter):
    LEVEL_COLOURS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW + Style.BRIGHT,
        logging.ERROR: Fore.RED + Style.BRIGHT,
        logging.CRITICAL: Fore.MAGENTA + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelno, "")
        line = "{} {}{}{} {}: {}".format(
            time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(record.created)),
            colour, record.levelname, Style.RESET_ALL,
            record.name, record.getMessage(),
        )
        if getattr(record, "request_id", None):
            line += f" req={record.request_id}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _with_filters(handler: logging.Handler, filters: List[logging.Filter]) -> logging.Handler:
    for f in filters:
        handler.addFilter(f)
    return handler


def init_structured_logging() -> None:
    """Replace the root handlers with the console (and optional JSON file) handlers."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))
    root.handlers.clear()

    filters: List[logging.Filter] = [
        ContextFilter(),
        RateLimitingFilter(),
        SensitiveDataFilter(),
    ]

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColoredTextFormatter())
    root.addHandler(_with_filters(console, filters))

    log_file = os.getenv("LOG_FILE")
    if log_file:
        file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=3)
        file_handler.setFormatter(CustomJsonFormatter())
        root.addHandler(_with_filters(file_handler, filters))

    logging.getLogger(__name__).debug("Structured logging initialized")
