# =============================================================================
# core/generators/openapi.py - OpenAPI Document Generator
# =============================================================================
# Builds an OpenAPI 3.1 document from a Routing table. The document is a pure
# function of the declared schemas, descriptions, tags and examples: no
# handler is ever called.
#
# Usage:
#   document = generate_openapi(routing, title="Example API", version="1.0.0",
#                               server_url="http://localhost:8090")
#   Path("docs/api.yaml").write_text(to_yaml(document))
#
# Missing descriptions or examples never abort the pass; the affected
# operation is emitted without them.
# =============================================================================

import copy
import logging
from typing import Any

import yaml
from pydantic import BaseModel

from core.routing import Route, Routing
from core.schemas import schema_examples

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.1.0"
REF_TEMPLATE = "#/components/schemas/{model}"
ERROR_SCHEMA_NAME = "ErrorResponse"

BODY_METHODS = ("post", "put", "patch")

ERROR_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "error": {"type": "string"},
        "message": {"type": "string"},
        "statusCode": {"type": "integer"},
        "details": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "field": {"type": "string"},
                    "message": {"type": "string"},
                },
                "required": ["field", "message"],
            },
        },
    },
    "required": ["error", "message", "statusCode"],
}

VALIDATION_ERROR_EXAMPLE: dict[str, Any] = {
    "error": "Bad Request",
    "message": "id: Should be a string of digits",
    "statusCode": 400,
    "details": [{"field": "id", "message": "Should be a string of digits"}],
}


# =============================================================================
# Schema Helpers
# =============================================================================

def model_schema(model: type[BaseModel], mode: str, components: dict[str, Any]) -> dict[str, Any]:
    """
    JSON schema of a model with nested definitions hoisted into components.

    Args:
        model: Pydantic model class
        mode: "validation" for inputs, "serialization" for outputs
        components: Shared components/schemas mapping, updated in place
    """
    schema = model.model_json_schema(by_alias=True, ref_template=REF_TEMPLATE, mode=mode)
    for name, definition in schema.pop("$defs", {}).items():
        if name in components and components[name] != definition:
            logger.debug(f"Schema {name} already documented with a different shape, keeping the first")
            continue
        components[name] = definition
    return schema


def property_key(model: type[BaseModel], key: str) -> str:
    """Map a field name or alias to the key used in the by-alias schema."""
    for name, info in model.model_fields.items():
        if key in (name, info.alias):
            return info.alias or name
    return key


def first_example(model: type[BaseModel]) -> dict[str, Any] | None:
    examples = schema_examples(model)
    return copy.deepcopy(examples[0]) if examples else None


def _strip_examples(schema: dict[str, Any]) -> dict[str, Any]:
    """Drop the model-level examples key; operations carry their own example."""
    return {key: value for key, value in schema.items() if key != "examples"}


# =============================================================================
# Operations
# =============================================================================

def build_operation(route: Route, components: dict[str, Any]) -> dict[str, Any]:
    """Document one (path, method) entry."""
    endpoint = route.endpoint
    operation: dict[str, Any] = {"operationId": route.operation_id}

    if endpoint.tag:
        operation["tags"] = [endpoint.tag]
    if endpoint.summary:
        operation["summary"] = endpoint.summary
    if endpoint.description:
        operation["description"] = endpoint.description
    if not (endpoint.summary or endpoint.description):
        logger.warning(f"{route.method.upper()} {route.template} has no description")

    input_schema = model_schema(endpoint.input, "validation", components)
    properties: dict[str, Any] = input_schema.get("properties", {})
    required = set(input_schema.get("required", []))
    input_example = first_example(endpoint.input) or {}

    parameters = []
    path_keys = set()
    for name in route.param_names:
        key = property_key(endpoint.input, name)
        path_keys.add(key)
        parameters.append(
            _parameter(name, "path", properties.get(key, {"type": "string"}), True, input_example.get(key))
        )

    remaining = {key: value for key, value in properties.items() if key not in path_keys}
    uses_body = route.method in BODY_METHODS and "body" in endpoint.input_sources

    if uses_body and remaining:
        body_schema: dict[str, Any] = {"type": "object", "properties": remaining}
        body_required = [key for key in remaining if key in required]
        if body_required:
            body_schema["required"] = body_required
        media: dict[str, Any] = {"schema": body_schema}
        body_example = {key: value for key, value in input_example.items() if key not in path_keys}
        if body_example:
            media["example"] = body_example
        operation["requestBody"] = {
            "required": bool(body_required),
            "content": {"application/json": media},
        }
    elif "query" in endpoint.input_sources:
        for key, schema in remaining.items():
            parameters.append(_parameter(key, "query", schema, key in required, input_example.get(key)))

    if parameters:
        operation["parameters"] = parameters

    output_schema = _strip_examples(model_schema(endpoint.output, "serialization", components))
    positive: dict[str, Any] = {"schema": output_schema}
    output_example = first_example(endpoint.output)
    if output_example is not None:
        positive["example"] = output_example
    else:
        logger.warning(f"{route.method.upper()} {route.template} has no output example")

    operation["responses"] = {
        str(endpoint.status_code): {
            "description": f"{route.method.upper()} {route.template} positive response",
            "content": {"application/json": positive},
        },
        "400": {
            "description": f"{route.method.upper()} {route.template} validation error",
            "content": {
                "application/json": {
                    "schema": {"$ref": REF_TEMPLATE.format(model=ERROR_SCHEMA_NAME)},
                    "example": copy.deepcopy(VALIDATION_ERROR_EXAMPLE),
                }
            },
        },
        "default": {
            "description": f"{route.method.upper()} {route.template} error response",
            "content": {
                "application/json": {
                    "schema": {"$ref": REF_TEMPLATE.format(model=ERROR_SCHEMA_NAME)},
                }
            },
        },
    }
    return operation


def _parameter(name: str, location: str, schema: dict[str, Any], required: bool, example: Any) -> dict[str, Any]:
    parameter: dict[str, Any] = {
        "name": name,
        "in": location,
        "required": required,
    }
    description = schema.get("description")
    if description:
        parameter["description"] = description
    parameter["schema"] = schema
    if example is not None:
        parameter["example"] = example
    return parameter


# =============================================================================
# Document
# =============================================================================

def generate_openapi(
    routing: Routing,
    *,
    title: str,
    version: str,
    server_url: str,
    description: str | None = None,
) -> dict[str, Any]:
    """
    Build the OpenAPI document for every route in the routing table.

    Returns:
        The document as plain dicts/lists, ready for JSON or YAML
    """
    components: dict[str, Any] = {}
    paths: dict[str, dict[str, Any]] = {}
    tags: list[str] = []

    for route in routing:
        try:
            operation = build_operation(route, components)
        except Exception as e:
            # One bad schema should not take the whole document down
            logger.warning(f"Could not fully document {route.method.upper()} {route.template}: {e}")
            operation = {"operationId": route.operation_id, "responses": {"default": {"description": "Undocumented"}}}
        paths.setdefault(route.openapi_path, {})[route.method] = operation

        tag = route.endpoint.tag
        if tag and tag not in tags:
            tags.append(tag)

    info: dict[str, Any] = {"title": title, "version": version}
    if description:
        info["description"] = description

    components[ERROR_SCHEMA_NAME] = copy.deepcopy(ERROR_SCHEMA)

    document: dict[str, Any] = {
        "openapi": OPENAPI_VERSION,
        "info": info,
        "servers": [{"url": server_url}],
        "tags": [{"name": tag} for tag in tags],
        "paths": paths,
        "components": {"schemas": components},
    }
    return document


class _NoAliasDumper(yaml.SafeDumper):
    """SafeDumper that never emits &anchors/*aliases for repeated objects."""

    def ignore_aliases(self, data):
        return True


def to_yaml(document: dict[str, Any]) -> str:
    """Render a document as YAML, preserving key order."""
    return yaml.dump(
        document,
        Dumper=_NoAliasDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=120,
    )
