# =============================================================================
# core/middleware.py - Middleware Units
# =============================================================================
# A middleware runs before the endpoint handler and contributes a mapping
# that is merged (by key) into the request context. Contributions from
# earlier middleware are visible to later middleware and to the handler.
#
# Usage:
#   async def provide_method(*, input, request, context, logger):
#       return {"method": request.method}
#
#   method_provider = Middleware(handler=provide_method)
#
# A middleware aborts the chain by raising HttpError; the handler is then
# skipped and the client receives the error envelope.
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Union

from core.errors import ConfigurationError
from core.request import RequestData
from core.schemas import EmptyInput, InputModel

Contribution = Mapping[str, Any]

# handler(*, input, request, context, logger) -> contribution (sync or async)
MiddlewareHandler = Callable[..., Union[Contribution, Awaitable[Contribution]]]


@dataclass(frozen=True)
class Middleware:
    """
    A pre-handler step with its own input schema.

    The input schema is validated against the same merged raw request data
    as the endpoint's, independently of it, so a middleware only sees the
    fields it declares.
    """
    handler: MiddlewareHandler
    input: type[InputModel] = EmptyInput
    name: str | None = None

    def __post_init__(self):
        if not callable(self.handler):
            raise ConfigurationError("Middleware handler must be callable")
        if not (isinstance(self.input, type) and issubclass(self.input, InputModel)):
            raise ConfigurationError(
                f"Middleware {self.label} input must be an InputModel subclass"
            )

    @property
    def label(self) -> str:
        return self.name or getattr(self.handler, "__name__", "middleware")


def as_middleware(value: Middleware | MiddlewareHandler) -> Middleware:
    """Accept either a Middleware or a bare handler function."""
    if isinstance(value, Middleware):
        return value
    return Middleware(handler=value)


def merge_contribution(
    context: Mapping[str, Any],
    contribution: Any,
    middleware: Middleware,
    logger: logging.Logger | logging.LoggerAdapter,
) -> dict[str, Any]:
    """
    Return a new context with the contribution merged in.

    A middleware that returns None contributes nothing. Any other
    non-mapping return value is a defect in the middleware.
    """
    if contribution is None:
        return dict(context)
    if not isinstance(contribution, Mapping):
        raise TypeError(
            f"Middleware {middleware.label} returned {type(contribution).__name__}, expected a mapping"
        )
    overridden = set(context) & set(contribution)
    if overridden:
        logger.debug(f"Middleware {middleware.label} overrides context keys: {sorted(overridden)}")
    return {**context, **contribution}
