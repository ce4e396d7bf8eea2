"""
Manejadores globales de errores.

Todas las respuestas de error comparten la forma
``{statusCode, path, method, timestamp, message, detail}``.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.common.dates import utc_now
from app.core.config import settings

logger = logging.getLogger(__name__)


def _error_body(request: Request, status_code: int, message) -> dict:
    return {
        "statusCode": status_code,
        "path": request.url.path,
        "method": request.method,
        "timestamp": utc_now().isoformat(),
        "message": message,
        "detail": message,
    }


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", []) if p != "body")
        messages.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(request, status.HTTP_400_BAD_REQUEST, messages),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Error no controlado en {request.method} {request.url.path}: {exc}")
    body = _error_body(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Error interno del servidor")
    if not settings.is_production:
        body["debug"] = f"{type(exc).__name__}: {exc}"
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
