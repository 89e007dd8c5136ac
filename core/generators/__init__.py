# =============================================================================
# core/generators/ - Offline Artefact Generators
# =============================================================================
# Pure functions over a Routing table:
# - openapi.py: OpenAPI 3.1 document (dict) and its YAML rendering
# - client.py: Typed httpx client module source
#
# Neither generator executes handlers.
# =============================================================================

from core.generators.client import generate_client
from core.generators.openapi import generate_openapi, to_yaml

__all__ = [
    "generate_client",
    "generate_openapi",
    "to_yaml",
]
