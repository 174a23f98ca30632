"""schemas/common.py
====================
Envelope and probe models shared by every endpoint.

`utils.response_utils.create_standard_response` builds the envelope; the
models here document it in the OpenAPI schema.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class StandardResponse(BaseModel):
    """Envelope returned by every JSON endpoint."""

    status: Literal["success", "error"] = Field(..., description="Result status")
    message: Optional[str] = Field(None, description="Human-readable summary")
    data: Any = None
    timestamp: str
    request_id: str = Field(..., description="Echo of the X-Request-ID correlation id")


class HealthStatus(BaseModel):
    status: Literal["healthy", "degraded", "down"]
    environment: str
    app_name: str
    version: str
