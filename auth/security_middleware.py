"""
Security middleware for FastAPI:
- Security headers (HSTS, X-Frame-Options, CSP, etc.)
- Request audit logging with request ids and latency
"""

import time
import uuid

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Headers added:
    - Strict-Transport-Security (HSTS)
    - X-Frame-Options
    - X-Content-Type-Options
    - Content-Security-Policy
    - Referrer-Policy
    - Permissions-Policy
    - Cache-Control (tenant data must not be cached by shared proxies)
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = (
            "geolocation=(), "
            "microphone=(), "
            "camera=(), "
            "payment=()"
        )
        if request.url.path.startswith("/api/"):
            response.headers.setdefault("Cache-Control", "no-store")

        return response


class RequestAuditMiddleware(BaseHTTPMiddleware):
    """
    Log every request with the store header it carried.
    Tags the response with X-Request-ID.
    """

    def __init__(self, app, store_id_header: str = "x-store-id"):
        super().__init__(app)
        self.store_id_header = store_id_header

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        client_ip = request.client.host if request.client else "unknown"
        store_id = request.headers.get(self.store_id_header)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"[{request_id}] {request.method} {request.url.path} | "
            f"store={store_id} | IP: {client_ip} | "
            f"{response.status_code} in {elapsed_ms:.1f}ms"
        )

        response.headers["X-Request-ID"] = request_id
        return response
