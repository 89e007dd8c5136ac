# =============================================================================
# core/errors.py - Error Taxonomy
# =============================================================================
# Every per-request failure is an ApiError subclass that knows how to render
# itself as the uniform error envelope:
#
#   {"error": "Not Found", "message": "User not found", "statusCode": 404}
#
# Validation errors additionally carry:
#
#   {"details": [{"field": "id", "message": "..."}]}
#
# ConfigurationError is NOT an ApiError: it happens at startup or while the
# routing table is built, and it is fatal.
# =============================================================================

from http import HTTPStatus
from typing import Any


def reason_phrase(status_code: int) -> str:
    """Return the standard reason phrase for a status code."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


# =============================================================================
# Startup / Build Errors
# =============================================================================

class ConfigurationError(Exception):
    """
    Raised when configuration or the routing table is invalid.

    Covers environment variables that cannot be coerced, ambiguous routes,
    and endpoints whose input sources are misdeclared.
    """

    def __init__(self, message: str, problems: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.problems = problems or []

    def __str__(self) -> str:
        if not self.problems:
            return self.message
        lines = "\n".join(f"  - {problem}" for problem in self.problems)
        return f"{self.message}\n{lines}"


# =============================================================================
# Per-Request Errors
# =============================================================================

class ApiError(Exception):
    """
    Base exception for anything that ends up as an HTTP error response.

    Attributes:
        status_code: HTTP status sent to the client
        message: Client-facing message
        details: Optional field-level problems
        headers: Extra response headers (e.g. Allow)
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: list[dict[str, str]] | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or []
        self.headers = headers or {}

    def to_envelope(self) -> dict[str, Any]:
        """Convert exception to the error envelope."""
        envelope: dict[str, Any] = {
            "error": reason_phrase(self.status_code),
            "message": self.message,
            "statusCode": self.status_code,
        }
        if self.details:
            envelope["details"] = self.details
        return envelope


class HttpError(ApiError):
    """
    Raised by handlers and middleware to signal an explicit HTTP error.

    Example:
        raise HttpError(404, "User not found")
    """

    def __init__(self, status_code: int, message: str | None = None, headers: dict[str, str] | None = None):
        if not 400 <= status_code <= 599:
            raise ValueError(f"HttpError status must be 4xx or 5xx, got {status_code}")
        super().__init__(
            message=message or reason_phrase(status_code),
            status_code=status_code,
            headers=headers,
        )


class InputValidationError(ApiError):
    """Raised when request data does not satisfy an input schema."""

    def __init__(self, details: list[dict[str, str]]):
        message = "; ".join(f"{item['field']}: {item['message']}" for item in details)
        super().__init__(
            message=message or "Invalid request",
            status_code=400,
            details=details,
        )

    @classmethod
    def from_pydantic(cls, exc: Any) -> "InputValidationError":
        """Build from a pydantic ValidationError, one detail per failing field."""
        details = []
        for error in exc.errors(include_url=False):
            field = ".".join(str(part) for part in error["loc"]) or "(root)"
            details.append({"field": field, "message": error["msg"]})
        return cls(details)


class OutputContractViolation(ApiError):
    """
    Raised when a handler returns a value that fails its output schema.

    This is a programming defect in the handler, never a client fault, so
    the client only sees a generic message. The real problems are kept on
    the exception for logging.
    """

    def __init__(self, operation_id: str, problems: list[str]):
        super().__init__(message="Internal Server Error", status_code=500)
        self.operation_id = operation_id
        self.problems = problems


class RouteNotFoundError(ApiError):
    """Raised when no routing-table node matches the request path."""

    def __init__(self, method: str, path: str):
        super().__init__(
            message=f"Can not {method.upper()} {path}",
            status_code=404,
        )


class MethodNotAllowedError(ApiError):
    """Raised when the path exists but does not serve the request method."""

    def __init__(self, method: str, allowed: list[str]):
        super().__init__(
            message=f"{method.upper()} is not allowed",
            status_code=405,
            headers={"Allow": ", ".join(m.upper() for m in allowed)},
        )
        self.allowed = allowed


def internal_error_envelope() -> dict[str, Any]:
    """Envelope used for unexpected faults; leaks no internal detail."""
    return ApiError("Internal Server Error", status_code=500).to_envelope()
