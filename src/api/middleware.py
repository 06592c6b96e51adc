"""Security headers and request timing."""

from __future__ import annotations

import time

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject security headers and log slow requests on every response."""

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed = time.perf_counter() - started

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"

        if elapsed > 10:
            logger.info(
                f"[API] Slow request {request.method} {request.url.path}: {elapsed:.1f}s"
            )
        return response
