# =============================================================================
# core/pipeline.py - Request Pipeline
# =============================================================================
# Runs one resolved request through its endpoint:
#
#   1. Merge raw sources (path/query/body) and validate against the input
#      schema. Field transforms and defaults apply here.
#   2. Run the middleware chain in order; each contribution is merged into
#      the request context.
#   3. Call the handler with the validated input, the context and a logger.
#   4. Validate/serialize the return value against the output schema.
#
# Every failure is converted to the uniform error envelope at this boundary;
# nothing raised by a handler or middleware escapes execute().
# =============================================================================

import asyncio
import functools
import inspect
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError

from core.endpoints import Endpoint
from core.errors import (
    ApiError,
    InputValidationError,
    OutputContractViolation,
    internal_error_envelope,
)
from core.middleware import merge_contribution
from core.request import RequestData
from core.routing import Route
from core.schemas import InputModel

logger = logging.getLogger(__name__)

# Parent logger for everything handlers and middleware log
handler_logger = logging.getLogger("api")


@dataclass(frozen=True)
class PipelineResponse:
    """Status, JSON body and extra headers produced for one request."""
    status_code: int
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_error(cls, exc: ApiError) -> "PipelineResponse":
        return cls(status_code=exc.status_code, body=exc.to_envelope(), headers=dict(exc.headers))


class RequestLogger(logging.LoggerAdapter):
    """Prefixes every message with the request id and operation id."""

    def process(self, msg, kwargs):
        return f"[{self.extra['request_id']}] {self.extra['operation_id']}: {msg}", kwargs


# =============================================================================
# Steps
# =============================================================================

def field_keys(schema: type[InputModel]) -> dict[str, str]:
    """Map every accepted key (field name or alias) to the field's wire name."""
    keys: dict[str, str] = {}
    for name, info in schema.model_fields.items():
        wire = info.alias or name
        keys[name] = wire
        keys[wire] = wire
    return keys


def merge_sources(endpoint: Endpoint, request: RequestData) -> dict[str, Any]:
    """
    Merge the endpoint's input sources into one mapping.

    Keys are compared by the input field they populate, so "item_id" and
    "itemId" are the same key. Path parameters take precedence: a query or
    body key naming a path field is dropped.

    Raises:
        InputValidationError: If body and query both supply one field
    """
    keys = field_keys(endpoint.input)
    path_params = request.path_params if "path" in endpoint.input_sources else {}
    path_fields = {keys.get(key, key) for key in path_params}

    merged: dict[str, Any] = {}
    origin: dict[str, str] = {}
    conflicts = []

    for source in endpoint.input_sources:
        if source == "path":
            continue
        for key, value in request.source(source).items():
            field_key = keys.get(key, key)
            if field_key in path_fields:
                logger.debug(
                    f"[{request.request_id}] Ignoring {source} key {key!r}, "
                    f"{field_key!r} comes from the path"
                )
                continue
            if field_key in origin:
                where = origin[field_key]
                conflicts.append({
                    "field": field_key,
                    "message": f"Provided twice in {source}" if where == source
                    else f"Provided by both {where} and {source}",
                })
                continue
            merged[key] = value
            origin[field_key] = source

    if conflicts:
        raise InputValidationError(conflicts)

    merged.update(path_params)
    return merged


def validate_input(schema: type[InputModel], raw: Mapping[str, Any]) -> InputModel:
    """Validate raw data against an input schema, applying transforms and defaults."""
    try:
        return schema.model_validate(dict(raw))
    except ValidationError as e:
        raise InputValidationError.from_pydantic(e) from e


def serialize_output(endpoint: Endpoint, result: Any, operation_id: str) -> dict[str, Any]:
    """
    Validate a handler's return value and serialize it for the wire.

    Raises:
        OutputContractViolation: If the value does not match the output schema
    """
    if isinstance(result, BaseModel) and not isinstance(result, endpoint.output):
        result = result.model_dump(by_alias=True)

    try:
        model = endpoint.output.model_validate(result)
        return model.model_dump(mode="json", by_alias=True)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in error['loc']) or '(root)'}: {error['msg']}"
            for error in e.errors(include_url=False)
        ]
        raise OutputContractViolation(operation_id, problems) from e
    except PydanticSerializationError as e:
        raise OutputContractViolation(operation_id, [str(e)]) from e


async def invoke(fn: Callable[..., Any], **kwargs: Any) -> Any:
    """
    Call a handler or middleware function.

    Coroutine functions are awaited on the event loop; plain functions run
    in a worker thread so blocking code does not stall other requests.
    """
    if inspect.iscoroutinefunction(fn):
        return await fn(**kwargs)
    result = await asyncio.to_thread(functools.partial(fn, **kwargs))
    if inspect.isawaitable(result):
        result = await result
    return result


async def run_endpoint(route: Route, request: RequestData, log: logging.LoggerAdapter) -> dict[str, Any]:
    """Run the four pipeline steps and return the serialized success body."""
    endpoint = route.endpoint
    raw = merge_sources(endpoint, request)
    validated = validate_input(endpoint.input, raw)

    context: dict[str, Any] = {}
    for middleware in endpoint.middlewares:
        middleware_input = validate_input(middleware.input, raw)
        contribution = await invoke(
            middleware.handler,
            input=middleware_input,
            request=request,
            context=MappingProxyType(context),
            logger=log,
        )
        context = merge_contribution(context, contribution, middleware, log)

    result = await invoke(
        endpoint.handler,
        input=validated,
        context=MappingProxyType(context),
        logger=log,
    )
    return serialize_output(endpoint, result, route.operation_id)


# =============================================================================
# Boundary
# =============================================================================

async def execute(route: Route, request: RequestData) -> PipelineResponse:
    """
    Execute a resolved route and always return a response.

    Args:
        route: The route the request resolved to
        request: Raw request data, including captured path parameters

    Returns:
        The success body with the endpoint's status code, or an error envelope
    """
    log = RequestLogger(
        handler_logger,
        {"request_id": request.request_id, "operation_id": route.operation_id},
    )

    try:
        body = await run_endpoint(route, request, log)
    except OutputContractViolation as e:
        logger.error(
            f"[{request.request_id}] {route.method.upper()} {route.template} returned a value "
            f"violating its output schema: {'; '.join(e.problems)}"
        )
        return PipelineResponse.from_error(e)
    except InputValidationError as e:
        logger.debug(f"[{request.request_id}] {route.operation_id} rejected input: {e.message}")
        return PipelineResponse.from_error(e)
    except ApiError as e:
        logger.info(f"[{request.request_id}] {route.operation_id} signalled {e.status_code}: {e.message}")
        return PipelineResponse.from_error(e)
    except Exception as e:
        logger.exception(f"[{request.request_id}] Unexpected error in {route.operation_id}: {e}")
        return PipelineResponse(status_code=500, body=internal_error_envelope())

    return PipelineResponse(status_code=route.endpoint.status_code, body=body)
