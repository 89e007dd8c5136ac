# =============================================================================
# core/generators/client.py - Typed Client Generator
# =============================================================================
# Emits the source of a Python module exposing one typed method per endpoint
# in a Routing table. Input and output shapes become TypedDicts derived from
# the same JSON schemas used for the OpenAPI document, so the client follows
# every schema change on the next generation pass.
#
# Usage:
#   source = generate_client(routing)
#   Path("generated/client.py").write_text(source)
#
# The generated module depends only on httpx.
# =============================================================================

import logging
import re
from typing import Any

from core.generators.openapi import model_schema
from core.routing import Route, Routing

logger = logging.getLogger(__name__)

_NON_IDENTIFIER = re.compile(r"[^A-Za-z0-9_]")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

_JSON_TYPES = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "null": "None",
}

RUNTIME = '''

class ApiClientError(Exception):
    """Raised for non-2xx responses; carries the error envelope."""

    def __init__(self, status_code: int, envelope: dict[str, Any]):
        super().__init__(f"{status_code}: {envelope.get('message', 'Request failed')}")
        self.status_code = status_code
        self.envelope = envelope


class _BaseClient:
    """Holds the httpx client and performs requests."""

    def __init__(self, base_url: str, client: httpx.Client | None = None, timeout: float = 10.0):
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, template: str, params: Mapping[str, Any], uses_body: bool) -> Any:
        remaining = dict(params)
        segments = []
        for segment in template.split("/"):
            if segment.startswith(":"):
                segments.append(quote(str(remaining.pop(segment[1:])), safe=""))
            else:
                segments.append(segment)
        path = "/".join(segments)

        if uses_body:
            response = self._client.request(method.upper(), path, json=remaining)
        else:
            response = self._client.request(method.upper(), path, params=remaining)

        if response.is_error:
            try:
                envelope = response.json()
            except ValueError:
                envelope = {"message": response.text}
            raise ApiClientError(response.status_code, envelope)
        return response.json()
'''


# =============================================================================
# Naming
# =============================================================================

def type_name(name: str) -> str:
    """Turn a schema/component name into a valid Python identifier."""
    cleaned = _NON_IDENTIFIER.sub("_", name)
    return cleaned if cleaned[:1].isalpha() else f"T{cleaned}"


def method_name(operation_id: str) -> str:
    """
    snake_case method name from a PascalCase operation id.

    Example:
        method_name("GetV1UserId")  # "get_v1_user_id"
    """
    return _CAMEL_BOUNDARY.sub("_", operation_id).lower()


# =============================================================================
# Types
# =============================================================================

def python_type(schema: dict[str, Any], refs: set[str] | None = None) -> str:
    """
    Best-effort Python annotation for a JSON schema fragment.

    Component names met on the way are added to refs, so the caller can
    turn the whole annotation into a forward reference.
    """
    if refs is None:
        refs = set()
    if "$ref" in schema:
        name = type_name(schema["$ref"].rsplit("/", 1)[-1])
        refs.add(name)
        return name

    for key in ("anyOf", "oneOf"):
        if key in schema:
            options = []
            for option in schema[key]:
                annotation = python_type(option, refs)
                if annotation not in options:
                    options.append(annotation)
            return " | ".join(options) if options else "Any"

    if "const" in schema:
        return f"Literal[{schema['const']!r}]"
    if "enum" in schema:
        return "Literal[" + ", ".join(repr(value) for value in schema["enum"]) + "]"

    kind = schema.get("type")
    if isinstance(kind, list):
        return " | ".join(python_type({**schema, "type": item}, refs) for item in kind)
    if kind == "array":
        items = schema.get("items")
        return f"list[{python_type(items, refs)}]" if isinstance(items, dict) else "list[Any]"
    if kind == "object":
        additional = schema.get("additionalProperties")
        if isinstance(additional, dict):
            return f"dict[str, {python_type(additional, refs)}]"
        return "dict[str, Any]"
    return _JSON_TYPES.get(kind, "Any")


def typed_dict(name: str, schema: dict[str, Any]) -> str:
    """Functional-syntax TypedDict for an object schema."""
    properties: dict[str, Any] = schema.get("properties", {})
    required = set(schema.get("required", []))

    if not properties:
        return f'{name} = TypedDict("{name}", {{}})\n'

    lines = [f'{name} = TypedDict("{name}", {{']
    for key, field_schema in properties.items():
        refs: set[str] = set()
        annotation = python_type(field_schema, refs)
        if refs:
            annotation = repr(annotation)
        if key not in required:
            annotation = f"NotRequired[{annotation}]"
        lines.append(f"    {key!r}: {annotation},")
    lines.append("})")
    return "\n".join(lines) + "\n"


def render_method(route: Route, input_type: str, output_type: str) -> str:
    endpoint = route.endpoint
    uses_body = route.method in ("post", "put", "patch") and "body" in endpoint.input_sources
    doc = endpoint.summary or endpoint.description or f"{route.method.upper()} {route.template}"
    doc = doc.replace("\\", "\\\\").replace('"', "'")
    return (
        f"    def {method_name(route.operation_id)}(self, params: {input_type}) -> {output_type}:\n"
        f'        """{doc}"""\n'
        f"        return self._request({route.method!r}, {route.template!r}, params, uses_body={uses_body})\n"
    )


# =============================================================================
# Module
# =============================================================================

def generate_client(routing: Routing, class_name: str = "ApiClient") -> str:
    """
    Generate the client module source.

    Args:
        routing: The routing table the server uses
        class_name: Name of the generated client class

    Returns:
        Python source text (deterministic for a given routing table)
    """
    components: dict[str, Any] = {}
    operations = []

    for route in routing:
        input_schema = model_schema(route.endpoint.input, "validation", components)
        output_schema = model_schema(route.endpoint.output, "serialization", components)
        operations.append((route, input_schema, output_schema))

    blocks = [
        '"""Typed API client. Generated from the routing table - do not edit."""\n',
        "from typing import Any, Literal, Mapping, NotRequired, TypedDict\n"
        "from urllib.parse import quote\n"
        "\n"
        "import httpx\n",
    ]

    for name, schema in components.items():
        blocks.append(typed_dict(type_name(name), schema))

    for route, input_schema, output_schema in operations:
        blocks.append(typed_dict(f"{route.operation_id}Input", input_schema))
        blocks.append(typed_dict(f"{route.operation_id}Output", output_schema))

    blocks.append(RUNTIME)

    methods = [
        render_method(route, f"{route.operation_id}Input", f"{route.operation_id}Output")
        for route, _, _ in operations
    ]
    if not methods:
        logger.warning("Routing table is empty, generating a client without methods")
    class_body = "\n".join(methods) if methods else "    pass\n"
    blocks.append(f"\nclass {class_name}(_BaseClient):\n" f'    """One method per endpoint."""\n\n' + class_body)

    return "\n\n\n".join(block.strip("\n") for block in blocks) + "\n"
