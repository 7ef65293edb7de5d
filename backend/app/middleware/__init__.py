# Middleware package init
"""
Userbase Backend - Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Security Headers] → [CORS] → [Request ID] → [Logging] → [Timeout] → [GZip] → Route

    1. Security headers wrap everything, so even CORS preflights and 408s carry them
    2. CORS answers preflight OPTIONS requests before any app work
    3. Request ID is assigned before logging so every log line can carry it
    4. Logging measures the full duration, including a timed-out request's 408
    5. Timeout bounds only the application work
"""
