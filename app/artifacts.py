# =============================================================================
# app/artifacts.py - Generated Artefacts
# =============================================================================
# Writes the OpenAPI YAML document and the typed client to disk. Used by
# the scripts in scripts/ and, in development, on server startup.
# =============================================================================

import logging
from pathlib import Path

from app.config import Settings
from core.generators import generate_client, generate_openapi, to_yaml
from core.routing import Routing
from lib.utils import safe

logger = logging.getLogger(__name__)


def write_docs(routing: Routing, settings: Settings, output: Path | str | None = None) -> Path:
    """
    Generate the OpenAPI document and write it as YAML.

    Returns:
        The path written to
    """
    path = Path(output or settings.DOCS_OUTPUT_PATH)
    document = generate_openapi(
        routing,
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        server_url=settings.API_SERVER_URL,
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_yaml(document), encoding="utf-8")
    logger.info(f"OpenAPI docs generated at {path}")
    return path


def write_client(routing: Routing, settings: Settings, output: Path | str | None = None) -> Path:
    """
    Generate the typed client module and write it.

    Returns:
        The path written to
    """
    path = Path(output or settings.CLIENT_OUTPUT_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(generate_client(routing), encoding="utf-8")
    logger.info(f"Client generated at {path}")
    return path


def refresh_artifacts(routing: Routing, settings: Settings) -> None:
    """
    Regenerate the artefacts enabled in settings.

    Failures are logged and never stop the server from starting.
    """
    if settings.GENERATE_CLIENT:
        result = safe(lambda: write_client(routing, settings))
        if not result.ok:
            logger.warning(f"Client generation failed: {result.error}")

    if settings.GENERATE_API_DOCS:
        result = safe(lambda: write_docs(routing, settings))
        if not result.ok:
            logger.warning(f"Docs generation failed: {result.error}")
