# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# This package contains the web application:
# - main.py: App factory, dispatcher route, server entry point
# - config.py: Environment variable loading and settings
# - logging_config.py: Root logger setup from LOG_LEVEL / LOG_COLORED
# - exceptions.py: Error envelope for failures outside the pipeline
# - artifacts.py: Writing the OpenAPI YAML and the typed client
# - middlewares.py: Middleware shared by the example endpoints
# - routers/: Endpoint declarations and the routing table
# - services/: Side effects called by handlers
#
# The app layer is thin - it handles HTTP concerns and delegates
# request processing to the core/ package.
# =============================================================================
