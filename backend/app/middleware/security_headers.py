"""
Userbase Backend - Security Headers Middleware
===============================================

What:  Adds conservative browser security headers to every response.
Why:   The API is JSON-only, so framing, MIME sniffing, and referrer leakage
       can all be switched off without affecting any legitimate client.

Headers set (existing values set by a route are kept):
    X-Content-Type-Options     nosniff
    X-Frame-Options            SAMEORIGIN
    Referrer-Policy            no-referrer
    X-DNS-Prefetch-Control     off
    Cross-Origin-Opener-Policy      same-origin
    Cross-Origin-Resource-Policy    same-origin
    Strict-Transport-Security  max-age=15552000; includeSubDomains   (hsts=True only)
"""

from typing import Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

BASE_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}

HSTS_VALUE = "max-age=15552000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    def __init__(self, app: ASGIApp, hsts: bool = True):
        super().__init__(app)
        self.headers = dict(BASE_HEADERS)
        if hsts:
            self.headers["Strict-Transport-Security"] = HSTS_VALUE

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response
