# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - utils.py: Safe-call wrappers returning Ok/Err results
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.utils import Err, Ok, SafeResult, describe_error, safe, safe_async

__all__ = [
    "Err",
    "Ok",
    "SafeResult",
    "describe_error",
    "safe",
    "safe_async",
]
