"""
response_utils.py
-----------------
The JSON envelope every endpoint answers with:

    {"status": "success" | "error", "message": ..., "data": ...,
     "timestamp": ..., "request_id": ...}
"""

from datetime import datetime
from typing import Any, Mapping, Optional
from uuid import uuid4

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from utils.logging_config import request_id_var
from utils.serializers import to_serialisable


async def create_standard_response(
    data: Any = None,
    message: str = "Success",
    success: bool = True,
    status_code: int = 200,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """Wrap `data` in the standard envelope, reusing the request's correlation id."""
    body = to_serialisable(data)
    if body is None:
        body = [] if isinstance(data, list) else {}

    return JSONResponse(
        content=jsonable_encoder({
            "status": "success" if success else "error",
            "message": message,
            "data": body,
            "timestamp": datetime.now().isoformat(),
            "request_id": request_id_var.get() or str(uuid4()),
        }),
        status_code=status_code,
        headers=dict(headers) if headers else None,
    )
