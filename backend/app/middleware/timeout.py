"""
Userbase Backend - Request Timeout Middleware
==============================================

What:  Answers 408 when the application has not produced a response in time.
How:   Wraps call_next in an anyio cancel scope. When the deadline passes the
       wait is abandoned and a FAILED envelope is returned at once. The
       handler itself is not interrupted: it runs to completion (including
       any store call in flight) and its late response is discarded.

Only the wait for the response *start* is bounded; a response that has begun
streaming is left alone.
"""

import logging

import anyio
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from app.middleware.request_id import request_id_var
from app.schemas.envelope import ErrorEnvelope

logger = logging.getLogger(__name__)


class TimeoutMiddleware(BaseHTTPMiddleware):

    def __init__(self, app: ASGIApp, timeout: float = 30.0):
        super().__init__(app)
        self.timeout = timeout

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        with anyio.move_on_after(self.timeout):
            return await call_next(request)

        rid = request_id_var.get("")
        logger.warning(
            "[%s] %s %s exceeded %.1fs, answering 408",
            rid,
            request.method,
            request.url.path,
            self.timeout,
        )
        return JSONResponse(
            status_code=408,
            content=ErrorEnvelope(message="Request timeout", request_id=rid or None).to_content(),
        )
