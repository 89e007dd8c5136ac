# =============================================================================
# app/exceptions.py - Exception Handlers
# =============================================================================
# The pipeline already converts every per-request failure into the error
# envelope. These handlers cover what happens outside it (body parsing,
# framework errors) so the client always receives the same shape.
# =============================================================================

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.errors import ApiError, HttpError, internal_error_envelope

logger = logging.getLogger(__name__)


def error_response(exc: ApiError) -> JSONResponse:
    """Render an ApiError as a JSON envelope response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_envelope(),
        headers=exc.headers or None,
    )


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Convert ApiError raised outside the pipeline to the envelope."""
    return error_response(exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Convert Starlette/FastAPI HTTPException to the envelope."""
    detail = exc.detail if isinstance(exc.detail, str) else None
    status_code = exc.status_code if 400 <= exc.status_code <= 599 else 500
    return error_response(HttpError(status_code, detail, headers=dict(exc.headers or {})))


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking internals."""
    logger.exception(f"Unexpected error handling {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=internal_error_envelope())


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all handlers to the application."""
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unexpected_exception_handler)
