# =============================================================================
# app/routers/ - Routing Table
# =============================================================================
# The routing table maps path segments to endpoints. Keys starting with ":"
# are path parameters; DependsOnMethod serves several verbs on one path.
#
# Endpoint modules:
# - users.py: Example user endpoints
#
# The same `routing` object is used by the server and by the generators in
# scripts/, so documentation and client always match the served endpoints.
# =============================================================================

from app.routers.users import get_user_endpoint, update_user_endpoint
from core.routing import DependsOnMethod, Routing

routing = Routing({
    "v1": {
        "user": {
            ":id": DependsOnMethod(
                get=get_user_endpoint,
                post=update_user_endpoint,
            ),
        },
    },
})

__all__ = ["routing"]
