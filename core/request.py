# =============================================================================
# core/request.py - Framework-Neutral Request Data
# =============================================================================
# The HTTP layer translates its native request object into RequestData so
# the pipeline, middleware and tests never depend on Starlette types.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class RequestData:
    """
    Raw request data, before any schema has looked at it.

    Attributes:
        method: Lower-case HTTP method ("get", "post", ...)
        path: Request path as received
        path_params: Values captured by routing placeholders
        query: Query parameters; repeated keys hold a list
        body: Parsed JSON object or form fields
        headers: Request headers (lower-case names)
        request_id: Correlation id used in log lines
    """
    method: str
    path: str
    path_params: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    request_id: str = "-"

    def source(self, name: str) -> Mapping[str, Any]:
        """Return one input source by name: "path", "query" or "body"."""
        if name == "path":
            return self.path_params
        if name == "query":
            return self.query
        if name == "body":
            return self.body
        raise KeyError(name)
