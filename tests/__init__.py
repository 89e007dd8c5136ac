# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the API boilerplate:
# - test_config.py: Settings parsing and defaults
# - test_utils.py: Safe-execution helpers
# - test_logging_config.py: Root logger setup and level colouring
# - test_routing.py: Routing table build and resolution
# - test_pipeline.py: Validation, middleware, handler and output contract
# - test_users_api.py: HTTP scenarios against the example endpoints
# - test_generators.py: OpenAPI document and typed client generation
#
# Run tests with: pytest
# =============================================================================
