"""
FastAPI Application Entrypoint
------------------------------

Main application bootstrap for the chat render service. Configures telemetry,
CORS, per-request correlation ids, the message rendering routes and the
exception handlers.

Features:
- Telemetry (structured logging, then Sentry if `SENTRY_ENABLED`) is initialised
  at import time, before any other module logs.
- Every request gets an `X-Request-ID` (taken from the client or generated) that is
  copied into the logging context and echoed back in the response.
- `RenderError` subclasses become JSON envelopes with their own status code;
  anything unhandled becomes a 500 envelope, is logged with the traceback and
  reported to Sentry.

Usage:
- Run locally with `python main.py` (uvicorn), or point any ASGI server at `main:app`.
"""

import logging
import os
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from utils.bootstrap import init_telemetry

init_telemetry(
    app_name=settings.APP_NAME,
    app_version=settings.APP_VERSION,
    environment=settings.ENV,
    sentry_dsn=settings.SENTRY_DSN,
)

from routes.messages import router as messages_router  # noqa: E402
from schemas.common import HealthStatus  # noqa: E402
from utils.logging_config import request_id_var, trace_id_var  # noqa: E402
from utils.message_render import RenderError  # noqa: E402
from utils.response_utils import create_standard_response  # noqa: E402
from utils.sentry_utils import capture_exception_with_context  # noqa: E402

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Renders assistant chat messages to safe HTML fragments",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _trace_id(traceparent: str) -> Optional[str]:
    # W3C traceparent: version-traceid-parentid-flags
    parts = traceparent.split("-")
    return parts[1] if len(parts) == 4 and len(parts[1]) == 32 else None


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = rid
    token = request_id_var.set(rid)
    trace_token = trace_id_var.set(_trace_id(request.headers.get("traceparent", "")))
    try:
        response = await call_next(request)
    finally:
        trace_id_var.reset(trace_token)
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = rid
    return response


@app.get("/health", response_model=HealthStatus)
async def health_check() -> HealthStatus:
    return HealthStatus(
        status="healthy",
        environment=settings.ENV,
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
    )


app.include_router(messages_router, tags=["messages"])


# -----------------------------------------------------------------------------
# Exception Handlers
# -----------------------------------------------------------------------------
@app.exception_handler(RenderError)
async def render_error_handler(request: Request, exc: RenderError) -> JSONResponse:
    rid = getattr(request.state, "request_id", "n/a")
    logger.warning("[%s] RenderError %s: %s", rid, exc.status_code, exc.message)
    return await create_standard_response(
        message=exc.message, success=False, status_code=exc.status_code
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    rid = getattr(request.state, "request_id", "n/a")
    logger.error("[%s] Unhandled exception: %s", rid, exc, exc_info=True)
    capture_exception_with_context(exc)

    detail_msg = (
        f"{type(exc).__name__}: {exc}"
        if settings.ENV.lower() != "production"
        else "Internal server error"
    )
    return await create_standard_response(
        message=detail_msg, success=False, status_code=500
    )


# Uvicorn Entry
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        log_level="debug" if settings.DEBUG else "info",
    )
