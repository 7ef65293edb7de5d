"""
Userbase Backend - Request ID Middleware
=========================================

What:  Assigns a correlation ID to each request and echoes it in X-Request-ID.
Why:   Every log line and every FAILED envelope for one request share the ID,
       so a client-reported requestId leads straight to the server log.
How:   Reuses a well-formed client X-Request-ID, otherwise generates one;
       stores it in a ContextVar (coroutine-local) and on request.state.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Client IDs are echoed into logs and headers, so only accept plain tokens
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def current_request_id(request: Request) -> Optional[str]:
    """
    The request's ID, or None before RequestIDMiddleware has run.

    The ContextVar is reset once the middleware returns, so handlers running
    outside it (the catch-all 500 handler) fall back to request.state, which
    shares the scope's state dict.
    """
    return request_id_var.get("") or getattr(request.state, "request_id", None)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attaches a request ID to the context, request.state, and the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        rid = incoming if _VALID_REQUEST_ID.match(incoming) else new_request_id()

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
