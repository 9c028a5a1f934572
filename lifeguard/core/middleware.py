"""HTTP middleware for request ID propagation and access logging.

Every request/response pair carries a correlation id:
- Reuse the incoming ``X-Request-ID`` header (configurable) or generate a UUID
- Store it in contextvars so every log line of the request carries it
- Echo it back with the total duration in the response headers
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from lifeguard.core.logging import clear_request_id, set_request_id
from lifeguard.core.state import get_app_settings

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a request id to the context, logs and response.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response with ``X-Request-ID`` and ``X-Request-Duration-ms`` headers.
    """

    header_name = get_app_settings(request).log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "route": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
