# =============================================================================
# core/endpoints.py - Endpoint Definitions
# =============================================================================
# An Endpoint pairs an HTTP method with an input schema, an output schema and
# a handler. Endpoints are built through an EndpointsFactory, which carries
# the middleware chain shared by every endpoint it builds.
#
# Usage:
#   factory = EndpointsFactory().add_middleware(method_provider)
#
#   get_user = factory.build(
#       method="get",
#       tag="users",
#       summary="Retrieves a user by its ID.",
#       input=GetUserInput,
#       output=GetUserOutput,
#       handler=get_user_handler,
#   )
#
# The handler is called with keyword arguments only:
#   handler(*, input, context, logger) -> output value (sync or async)
# =============================================================================

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence, Union

from core.errors import ConfigurationError
from core.middleware import Middleware, MiddlewareHandler, as_middleware
from core.schemas import InputModel, OutputModel

HTTP_METHODS = ("get", "post", "put", "patch", "delete")

INPUT_SOURCES = ("body", "query", "path")

# Merge order per method. Collisions between sources are rejected at request
# time, so the order only matters for error reporting.
DEFAULT_INPUT_SOURCES: dict[str, tuple[str, ...]] = {
    "get": ("query", "path"),
    "delete": ("query", "path"),
    "post": ("body", "query", "path"),
    "put": ("body", "query", "path"),
    "patch": ("body", "query", "path"),
}

Handler = Callable[..., Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class Endpoint:
    """
    Immutable declaration of one HTTP operation.

    Attributes:
        method: Lower-case HTTP method
        input: InputModel subclass validating the merged request data
        output: OutputModel subclass validating the handler's return value
        handler: Callable receiving input, context and logger
        middlewares: Middleware chain, executed first to last
        tag: Grouping tag for documentation
        summary: Short description (one line)
        description: Long description
        status_code: Success status code
        input_sources: Request sources merged into the input, in order
    """
    method: str
    input: type[InputModel]
    output: type[OutputModel]
    handler: Handler
    middlewares: tuple[Middleware, ...] = ()
    tag: str | None = None
    summary: str | None = None
    description: str | None = None
    status_code: int = 200
    input_sources: tuple[str, ...] = ()

    def __post_init__(self):
        problems = []

        if self.method not in HTTP_METHODS:
            problems.append(f"unsupported method {self.method!r}, expected one of {HTTP_METHODS}")
        if not (isinstance(self.input, type) and issubclass(self.input, InputModel)):
            problems.append("input must be an InputModel subclass")
        if not (isinstance(self.output, type) and issubclass(self.output, OutputModel)):
            problems.append("output must be an OutputModel subclass")
        if not callable(self.handler):
            problems.append("handler must be callable")
        if not 200 <= self.status_code <= 299:
            problems.append(f"success status must be 2xx, got {self.status_code}")

        sources = self.input_sources or DEFAULT_INPUT_SOURCES.get(self.method, ())
        unknown = [source for source in sources if source not in INPUT_SOURCES]
        if unknown:
            problems.append(f"unknown input sources {unknown}, expected any of {INPUT_SOURCES}")
        if len(set(sources)) != len(sources):
            problems.append(f"input sources declared more than once: {list(sources)}")

        if problems:
            raise ConfigurationError(
                f"Invalid {self.method.upper()} endpoint {self.name}",
                problems,
            )

        # Normalize so the rest of the pipeline never looks at defaults
        object.__setattr__(self, "input_sources", tuple(sources))

    @property
    def name(self) -> str:
        return getattr(self.handler, "__name__", "endpoint")

    @property
    def input_fields(self) -> set[str]:
        """Field names (and their aliases) accepted by the input schema."""
        names = set()
        for field_name, info in self.input.model_fields.items():
            names.add(field_name)
            if info.alias:
                names.add(info.alias)
        return names


class EndpointsFactory:
    """
    Builds endpoints that share a middleware chain.

    add_middleware() returns a new factory, so a base factory can be
    extended in different directions without the branches affecting each
    other. The first middleware added runs first.
    """

    def __init__(self, middlewares: Sequence[Middleware] = ()):
        self._middlewares = tuple(middlewares)

    @property
    def middlewares(self) -> tuple[Middleware, ...]:
        return self._middlewares

    def add_middleware(self, middleware: Middleware | MiddlewareHandler) -> "EndpointsFactory":
        """Return a new factory with the middleware appended to the chain."""
        return EndpointsFactory(self._middlewares + (as_middleware(middleware),))

    def build(
        self,
        *,
        method: str,
        input: type[InputModel],
        output: type[OutputModel],
        handler: Handler,
        tag: str | None = None,
        summary: str | None = None,
        description: str | None = None,
        status_code: int = 200,
        input_sources: Sequence[str] | None = None,
    ) -> Endpoint:
        """
        Build an Endpoint using this factory's middleware chain.

        Raises:
            ConfigurationError: If the declaration is inconsistent
        """
        return Endpoint(
            method=method.lower(),
            input=input,
            output=output,
            handler=handler,
            middlewares=self._middlewares,
            tag=tag,
            summary=summary,
            description=description,
            status_code=status_code,
            input_sources=tuple(input_sources or ()),
        )
