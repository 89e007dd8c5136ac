# =============================================================================
# core/ - Endpoint Pipeline Package
# =============================================================================
# This package contains the framework-agnostic request pipeline:
# - schemas.py: Input/output schema base classes and field types
# - endpoints.py: Endpoint definitions and the EndpointsFactory
# - middleware.py: Middleware units contributing request context
# - routing.py: Routing table compilation and resolution
# - pipeline.py: validate -> middleware -> handler -> serialize
# - errors.py: Error taxonomy and the uniform error envelope
# - generators/: OpenAPI document and typed client generation
#
# Code in this package should NOT import from FastAPI or Starlette.
# This keeps the pipeline testable without an HTTP server.
# =============================================================================

from core.endpoints import Endpoint, EndpointsFactory
from core.errors import ConfigurationError, HttpError
from core.middleware import Middleware
from core.routing import DependsOnMethod, Routing
from core.schemas import EmptyInput, InputModel, NumericId, OutputModel

__all__ = [
    "ConfigurationError",
    "DependsOnMethod",
    "EmptyInput",
    "Endpoint",
    "EndpointsFactory",
    "HttpError",
    "InputModel",
    "Middleware",
    "NumericId",
    "OutputModel",
    "Routing",
]
