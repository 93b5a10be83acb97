"""
Mindtrail Backend - Request ID Middleware
==========================================

What:  Tags every request with a short correlation id.
How:   Reuses a client-sent X-Request-ID (truncated to MAX_REQUEST_ID_LENGTH)
       or generates one; stores it in a ContextVar for loggers and error
       handlers, and echoes it in the X-Request-ID response header.

Error bodies carry the same id in `request_id`, so a user-reported error
can be matched to its log lines.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns and propagates the per-request correlation id."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get("X-Request-ID", "").strip()
        rid = incoming[:MAX_REQUEST_ID_LENGTH] if incoming else str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        response.headers["X-Request-ID"] = rid
        return response
