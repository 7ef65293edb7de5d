"""
Userbase Backend - Request Logging Middleware
==============================================

What:  One access log line per HTTP request, written after the response.
Why:   Replaces uvicorn's access log with one that carries the request ID,
       the duration, and a level that follows the status code.
Who:   Applied to every request, inside RequestIDMiddleware.

Log line:
    PUT /api/users/7 200 12.4ms [3f2a9c0d1b7e] from 10.0.0.12 "curl/8.4.0"

Level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO.
    Request bodies are never logged (they carry personal data).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("userbase.access")

# Probed every few seconds by orchestrators; logging them buries real traffic
QUIET_PATHS = {"/api/health"}


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status, duration, client, and user agent."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # The catch-all handler answers 500 further out; log the line now
            self._log(request, 500, start_time)
            raise

        self._log(request, response.status_code, start_time)
        return response

    @staticmethod
    def _log(request: Request, status: int, start_time: float) -> None:
        path = request.url.path
        duration_ms = (time.perf_counter() - start_time) * 1000
        client_ip = request.client.host if request.client else "unknown"
        user_agent = request.headers.get("user-agent", "-")
        rid = request_id_var.get("")

        logger.log(
            level_for_status(status),
            '%s %s %d %.1fms [%s] from %s "%s"',
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            user_agent,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
