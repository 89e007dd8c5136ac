# =============================================================================
# lib/utils.py - Safe Execution Helpers
# =============================================================================
# Wrap optional, non-critical operations so a failure becomes a value the
# caller can branch on instead of an exception that unwinds the request.
#
# Usage:
#   result = await safe_async(lambda: notify_audit_log(user_id))
#   if not result.ok:
#       logger.warning(f"Audit log skipped: {result.error}")
# =============================================================================

from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Literal, TypeVar, Union

T = TypeVar("T")


# =============================================================================
# Result Types
# =============================================================================

@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome holding the wrapped function's return value."""
    value: T
    ok: Literal[True] = True


@dataclass(frozen=True)
class Err:
    """Failed outcome holding a string description of what went wrong."""
    error: str
    ok: Literal[False] = False


SafeResult = Union[Ok[T], Err]


def describe_error(exc: BaseException) -> str:
    """
    Turn an exception into a short human-readable description.

    Falls back to the exception class name when the message is empty.

    Example:
        describe_error(ValueError("bad id"))  # "bad id"
        describe_error(KeyError())            # "KeyError"
    """
    message = str(exc)
    return message if message else type(exc).__name__


# =============================================================================
# Wrappers
# =============================================================================

def safe(fn: Callable[[], T]) -> SafeResult[T]:
    """
    Run a synchronous function without letting it raise.

    Only Exception subclasses are captured; KeyboardInterrupt and
    SystemExit still propagate.

    Args:
        fn: Zero-argument callable to run

    Returns:
        Ok(value) if fn returned normally, Err(error) if it raised
    """
    try:
        return Ok(fn())
    except Exception as e:
        return Err(describe_error(e))


async def safe_async(fn: Callable[[], Awaitable[T]]) -> SafeResult[T]:
    """
    Asynchronous counterpart of safe().

    Cancellation is not captured: asyncio.CancelledError keeps propagating
    so callers can still be cancelled.

    Args:
        fn: Zero-argument callable returning an awaitable

    Returns:
        Ok(value) if the awaitable resolved, Err(error) if it raised
    """
    try:
        return Ok(await fn())
    except Exception as e:
        return Err(describe_error(e))
