# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# Wires settings and the routing table into a FastAPI application. FastAPI
# provides the HTTP server integration, CORS/GZip middleware and the /docs
# UI; request dispatch goes through the routing table and the endpoint
# pipeline in core/.
#
# Usage:
#   python -m app.main
#   uvicorn app.main:create_app --factory --port 8090
# =============================================================================

import json
import logging
import sys
import uuid
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response

from app.artifacts import refresh_artifacts
from app.config import Settings, get_settings
from app.exceptions import register_exception_handlers
from app.logging_config import configure_logging
from core.errors import ConfigurationError, HttpError, MethodNotAllowedError, RouteNotFoundError
from core.generators import generate_openapi
from core.pipeline import execute
from core.request import RequestData
from core.routing import MethodNotAllowed, RouteNotFound, Routing

logger = logging.getLogger(__name__)

DISPATCH_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


# =============================================================================
# Request Translation
# =============================================================================

def _content_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";", 1)[0].strip().lower()


def _collect(items: list[tuple[str, Any]]) -> dict[str, Any]:
    """Group multi-valued items; repeated keys become lists."""
    collected: dict[str, Any] = {}
    for key, value in items:
        if key in collected:
            existing = collected[key]
            collected[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            collected[key] = value
    return collected


async def read_body(request: Request, settings: Settings) -> dict[str, Any]:
    """
    Parse the request body into a mapping.

    JSON bodies must be objects. Form and multipart bodies are only accepted
    when uploads are enabled; files arrive as UploadFile objects.

    Raises:
        HttpError: 400 for malformed JSON, 415 for unsupported content types
    """
    content_type = _content_type(request)

    if content_type in FORM_CONTENT_TYPES:
        if not settings.UPLOAD_ENABLED:
            raise HttpError(415, "Form and file uploads are disabled")
        form = await request.form()
        return _collect(list(form.multi_items()))

    raw = await request.body()
    if not raw.strip():
        return {}

    if content_type and content_type != "application/json" and not content_type.endswith("+json"):
        raise HttpError(415, f"Unsupported content type: {content_type}")

    try:
        data = json.loads(raw)
    except ValueError:
        raise HttpError(400, "Malformed JSON body") from None

    if not isinstance(data, dict):
        raise HttpError(400, "Request body must be a JSON object")
    return data


# =============================================================================
# Dispatcher
# =============================================================================

async def dispatch(request: Request) -> Response:
    """
    Resolve the request against the routing table and run the pipeline.

    HEAD runs the GET endpoint and answers with its status and headers only.
    """
    routing: Routing = request.app.state.routing
    settings: Settings = request.app.state.settings
    path = request.url.path

    resolution = routing.resolve(path, request.method)
    if isinstance(resolution, RouteNotFound):
        raise RouteNotFoundError(request.method, path)
    if isinstance(resolution, MethodNotAllowed):
        raise MethodNotAllowedError(request.method, list(resolution.allowed))

    body = {}
    if "body" in resolution.endpoint.input_sources:
        body = await read_body(request, settings)

    data = RequestData(
        method=request.method.lower(),
        path=path,
        path_params=resolution.path_params,
        query=_collect(list(request.query_params.multi_items())),
        body=body,
        headers=dict(request.headers),
        request_id=request.headers.get("x-request-id") or uuid.uuid4().hex,
    )

    response = await execute(resolution.route, data)
    headers = {**response.headers, "X-Request-ID": data.request_id}

    if request.method == "HEAD":
        return Response(status_code=response.status_code, headers=headers, media_type="application/json")

    return JSONResponse(status_code=response.status_code, content=response.body, headers=headers)


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Settings | None = None, routing: Routing | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Frozen settings; loaded from the environment when omitted
        routing: Routing table; the example routing when omitted

    Returns:
        Configured FastAPI instance
    """
    if settings is None:
        settings = get_settings()
    if routing is None:
        from app.routers import routing

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.API_TITLE} in {settings.ENVIRONMENT} mode")
        for route in routing:
            logger.debug(f"Serving {route.method.upper()} {route.template}")
        yield
        logger.info(f"Shutting down {settings.API_TITLE}")

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.routing = routing

    # -------------------------------------------------------------------------
    # Middleware
    # -------------------------------------------------------------------------

    if settings.COMPRESSION_ENABLED:
        app.add_middleware(GZipMiddleware, minimum_size=1000)

    if settings.CORS_ENABLED:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID"],
        )

    # -------------------------------------------------------------------------
    # Documentation
    # -------------------------------------------------------------------------

    def openapi() -> dict[str, Any]:
        if app.openapi_schema is None:
            app.openapi_schema = generate_openapi(
                routing,
                title=settings.API_TITLE,
                version=settings.API_VERSION,
                server_url=settings.API_SERVER_URL,
            )
        return app.openapi_schema

    app.openapi = openapi

    # -------------------------------------------------------------------------
    # Errors and Routes
    # -------------------------------------------------------------------------

    register_exception_handlers(app)

    # Registered after the docs routes, so /docs and /openapi.json win
    app.add_api_route(
        "/{path:path}",
        dispatch,
        methods=DISPATCH_METHODS,
        include_in_schema=False,
    )

    return app


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """Load settings, refresh dev artefacts and serve until terminated."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.critical(f"Refusing to start: {e}")
        sys.exit(1)

    configure_logging(settings)

    from app.routers import routing

    if settings.is_development:
        refresh_artifacts(routing, settings)

    app = create_app(settings, routing)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()
