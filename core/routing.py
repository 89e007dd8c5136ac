# =============================================================================
# core/routing.py - Routing Table
# =============================================================================
# The routing table is declared as a nested mapping of path segments. Keys
# prefixed with ":" are path parameters. Leaves are either a single Endpoint
# (served on its own method) or a DependsOnMethod for multi-verb paths:
#
#   routing = Routing({
#       "v1": {
#           "user": {
#               ":id": DependsOnMethod(get=get_user, post=update_user),
#           },
#       },
#   })
#
# Keys may contain "/" ("v1/user") and the empty key "" mounts a leaf on the
# parent path itself. The declaration is compiled once into a tree of
# RouteNode objects and is read-only afterwards, so concurrent resolve()
# calls need no locking.
# =============================================================================

import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from core.endpoints import Endpoint
from core.errors import ConfigurationError

PARAM_PREFIX = ":"

_PARAM_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_WORD_SPLIT = re.compile(r"[^A-Za-z0-9]+")


class DependsOnMethod:
    """
    Leaf serving a different endpoint per HTTP method on one path.

    Each keyword must name the method of the endpoint it maps to.
    """

    def __init__(self, **endpoints: Endpoint):
        if not endpoints:
            raise ConfigurationError("DependsOnMethod needs at least one endpoint")

        problems = []
        for method, endpoint in endpoints.items():
            if not isinstance(endpoint, Endpoint):
                problems.append(f"{method}: expected an Endpoint, got {type(endpoint).__name__}")
            elif endpoint.method != method.lower():
                problems.append(
                    f"{method}: endpoint {endpoint.name} is declared for {endpoint.method.upper()}"
                )
        if problems:
            raise ConfigurationError("Inconsistent DependsOnMethod", problems)

        self.endpoints = {method.lower(): endpoint for method, endpoint in endpoints.items()}


# =============================================================================
# Tree
# =============================================================================

@dataclass
class RouteNode:
    """
    One path segment of the compiled routing tree.

    A node has either literal children or a single parameter child, never
    both. A node with routes is a leaf for those methods.
    """
    segment: str
    literals: dict[str, "RouteNode"] = field(default_factory=dict)
    param: "RouteNode | None" = None
    routes: dict[str, "Route"] = field(default_factory=dict)

    @property
    def param_name(self) -> str:
        return self.segment[len(PARAM_PREFIX):]


@dataclass(frozen=True)
class Route:
    """A flattened (path, method) -> endpoint entry, used by generators."""
    template: str
    method: str
    endpoint: Endpoint
    param_names: tuple[str, ...]
    operation_id: str

    @property
    def openapi_path(self) -> str:
        """Path with {param} placeholders instead of :param."""
        parts = []
        for segment in self.template.strip("/").split("/"):
            if segment.startswith(PARAM_PREFIX):
                parts.append("{" + segment[len(PARAM_PREFIX):] + "}")
            else:
                parts.append(segment)
        return "/" + "/".join(part for part in parts if part)


# =============================================================================
# Resolution Results
# =============================================================================

@dataclass(frozen=True)
class RouteMatch:
    """The request resolved to an endpoint."""
    route: Route
    path_params: Mapping[str, str]

    @property
    def endpoint(self) -> Endpoint:
        return self.route.endpoint


@dataclass(frozen=True)
class RouteNotFound:
    """No node matches the path (404)."""
    method: str
    path: str


@dataclass(frozen=True)
class MethodNotAllowed:
    """A node matches the path but does not serve the method (405)."""
    method: str
    path: str
    allowed: tuple[str, ...]


def operation_id(method: str, template: str) -> str:
    """
    Build a PascalCase operation id from a method and path template.

    Example:
        operation_id("get", "/v1/user/:id")  # "GetV1UserId"
    """
    words = [method]
    for segment in template.split("/"):
        words.extend(word for word in _WORD_SPLIT.split(segment) if word)
    return "".join(word[:1].upper() + word[1:] for word in words)


# =============================================================================
# Routing
# =============================================================================

class Routing:
    """
    Compiled, read-only routing table.

    Raises ConfigurationError at construction when the declaration is
    ambiguous: literal and parameter siblings at one position, two
    parameter names at one position, a method declared twice on one path,
    or a path parameter the endpoint's input schema does not accept.
    """

    def __init__(self, tree: Mapping[str, Any]):
        if not isinstance(tree, Mapping):
            raise ConfigurationError("Routing must be declared as a mapping")
        self._root = RouteNode(segment="")
        self._routes: list[Route] = []
        self._build(tree, self._root, [])
        self._check_operation_ids()

    # -------------------------------------------------------------------------
    # Build
    # -------------------------------------------------------------------------

    def _build(self, tree: Mapping[str, Any], node: RouteNode, trail: list[str]) -> None:
        for key, value in tree.items():
            if not isinstance(key, str):
                raise ConfigurationError(f"Routing keys must be strings, got {key!r}")

            child, child_trail = node, trail
            for segment in (part for part in key.split("/") if part):
                child = self._descend(child, segment, child_trail)
                child_trail = child_trail + [segment]

            if isinstance(value, Mapping):
                self._build(value, child, child_trail)
            elif isinstance(value, Endpoint):
                self._attach(child, child_trail, {value.method: value})
            elif isinstance(value, DependsOnMethod):
                self._attach(child, child_trail, value.endpoints)
            else:
                raise ConfigurationError(
                    f"Unsupported routing entry at {_template(child_trail)}: {type(value).__name__}"
                )

    def _descend(self, node: RouteNode, segment: str, trail: list[str]) -> RouteNode:
        where = _template(trail + [segment])

        if segment.startswith(PARAM_PREFIX):
            name = segment[len(PARAM_PREFIX):]
            if not _PARAM_NAME.match(name):
                raise ConfigurationError(f"Invalid path parameter name {name!r} at {where}")
            if node.literals:
                raise ConfigurationError(
                    f"Parameter {segment} overlaps literal siblings {sorted(node.literals)} at {where}"
                )
            if node.param is not None and node.param.segment != segment:
                raise ConfigurationError(
                    f"Parameters {node.param.segment} and {segment} overlap at {where}"
                )
            taken = {s[len(PARAM_PREFIX):] for s in trail if s.startswith(PARAM_PREFIX)}
            if name in taken:
                raise ConfigurationError(f"Path parameter {name!r} used twice in {where}")
            if node.param is None:
                node.param = RouteNode(segment=segment)
            return node.param

        if node.param is not None:
            raise ConfigurationError(
                f"Literal {segment!r} overlaps parameter {node.param.segment} at {where}"
            )
        if segment not in node.literals:
            node.literals[segment] = RouteNode(segment=segment)
        return node.literals[segment]

    def _attach(self, node: RouteNode, trail: list[str], endpoints: Mapping[str, Endpoint]) -> None:
        template = _template(trail)
        params = tuple(s[len(PARAM_PREFIX):] for s in trail if s.startswith(PARAM_PREFIX))

        for method, endpoint in endpoints.items():
            if method in node.routes:
                raise ConfigurationError(f"{method.upper()} {template} is declared more than once")

            missing = [name for name in params if name not in endpoint.input_fields]
            if missing:
                raise ConfigurationError(
                    f"{method.upper()} {template}: input schema lacks path parameters {missing}"
                )
            if params and "path" not in endpoint.input_sources:
                raise ConfigurationError(
                    f"{method.upper()} {template}: path parameters declared but 'path' is not an input source"
                )

            route = Route(
                template=template,
                method=method,
                endpoint=endpoint,
                param_names=params,
                operation_id=operation_id(method, template),
            )
            node.routes[method] = route
            self._routes.append(route)

    def _check_operation_ids(self) -> None:
        seen: dict[str, Route] = {}
        for route in self._routes:
            other = seen.get(route.operation_id)
            if other is not None:
                raise ConfigurationError(
                    f"Operation id {route.operation_id} is shared by "
                    f"{other.method.upper()} {other.template} and {route.method.upper()} {route.template}"
                )
            seen[route.operation_id] = route

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    @property
    def routes(self) -> tuple[Route, ...]:
        """Every (path, method) entry, in declaration order."""
        return tuple(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def resolve(self, path: str, method: str) -> RouteMatch | RouteNotFound | MethodNotAllowed:
        """
        Resolve a request path and method.

        Segments are matched left to right, literal children first, then the
        parameter child. Trailing and duplicate slashes are ignored. HEAD
        is served by the GET endpoint of the path.
        """
        method = method.lower()
        node = self._root
        params: dict[str, str] = {}

        for segment in (part for part in path.split("/") if part):
            if segment in node.literals:
                node = node.literals[segment]
            elif node.param is not None:
                params[node.param.param_name] = segment
                node = node.param
            else:
                return RouteNotFound(method=method, path=path)

        if not node.routes:
            return RouteNotFound(method=method, path=path)

        route = node.routes.get(method)
        if route is None and method == "head":
            route = node.routes.get("get")
        if route is None:
            return MethodNotAllowed(method=method, path=path, allowed=_allowed_methods(node))

        return RouteMatch(route=route, path_params=params)


def _allowed_methods(node: RouteNode) -> tuple[str, ...]:
    allowed = []
    for method in node.routes:
        allowed.append(method)
        if method == "get":
            allowed.append("head")
    return tuple(allowed)


def _template(trail: list[str]) -> str:
    return "/" + "/".join(trail)
