# =============================================================================
# app/services/ - Side-Effecting Services
# =============================================================================
# Placeholder services called by the example endpoints.
# =============================================================================

from app.services.examples import example_with_random_throw

__all__ = ["example_with_random_throw"]
