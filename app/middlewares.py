# =============================================================================
# app/middlewares.py - Endpoint Middleware
# =============================================================================
# Middleware shared by the example endpoints. Each one contributes keys to
# the request context that handlers receive.
# =============================================================================

from core.middleware import Middleware
from core.schemas import EmptyInput


async def provide_method(*, input, request, context, logger):
    """Expose the normalized (lower-case) HTTP method as context["method"]."""
    return {"method": request.method.lower()}


method_provider_middleware = Middleware(
    handler=provide_method,
    input=EmptyInput,
    name="method_provider",
)
