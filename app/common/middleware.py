"""
Middleware HTTP de la API
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import logging
import time

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Registra método, ruta, estado y duración de cada request
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        log = logger.warning if response.status_code >= 500 else logger.info
        log(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers for production
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Las imágenes de /uploads se consumen desde el frontend en otro origen
        if not request.url.path.startswith("/uploads"):
            response.headers["Cross-Origin-Resource-Policy"] = "same-site"
        else:
            response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"

        return response
