# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using
# pydantic-settings. Every recognized option has a default, so an empty
# environment is a valid configuration.
#
# Usage:
#   from app.config import get_settings
#   settings = get_settings()
#   print(settings.PORT)
#
#   # Or parse an explicit mapping (tests, embedding)
#   settings = load_config({"PORT": "9000", "LOG_LEVEL": "warn"})
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in the working directory (if it exists)
#
# Settings are frozen: they are built once at process start and passed to
# the components that need them.
# =============================================================================

from functools import lru_cache
from typing import Literal, Mapping

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from core.errors import ConfigurationError

LogLevel = Literal["silent", "warn", "debug"]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses pydantic-settings to:
    - Automatically load from .env file
    - Coerce strings into ints/bools/enums
    - Provide sensible defaults for development
    """

    # -------------------------------------------------------------------------
    # Runtime Environment
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "production"] = Field(
        default="development",
        description="Runtime environment; generators only run in development",
    )

    # -------------------------------------------------------------------------
    # Server
    # -------------------------------------------------------------------------

    HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to",
    )

    PORT: int = Field(
        default=8090,
        ge=1,
        le=65535,
        description="Port for the API server",
    )

    CORS_ENABLED: bool = Field(
        default=True,
        description="Answer CORS preflights and add CORS headers (all origins)",
    )

    COMPRESSION_ENABLED: bool = Field(
        default=True,
        description="Gzip responses when the client accepts it",
    )

    UPLOAD_ENABLED: bool = Field(
        default=True,
        description="Accept multipart/form-data and url-encoded request bodies",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    LOG_LEVEL: LogLevel = Field(
        default="debug",
        description="silent = no output, warn = warnings and errors, debug = everything",
    )

    LOG_COLORED: bool = Field(
        default=True,
        description="Colour level names in log output",
    )

    # -------------------------------------------------------------------------
    # Generators
    # -------------------------------------------------------------------------

    GENERATE_CLIENT: bool = Field(
        default=True,
        description="Regenerate the typed client on startup (development only)",
    )

    GENERATE_API_DOCS: bool = Field(
        default=True,
        description="Regenerate the OpenAPI document on startup (development only)",
    )

    CLIENT_OUTPUT_PATH: str = Field(
        default="generated/client.py",
        description="Where the typed client is written",
    )

    DOCS_OUTPUT_PATH: str = Field(
        default="docs/api.yaml",
        description="Where the OpenAPI YAML document is written",
    )

    # -------------------------------------------------------------------------
    # API Metadata
    # -------------------------------------------------------------------------

    API_VERSION: str = Field(
        default="1.0.0",
        description="Version advertised in the OpenAPI document",
    )

    API_TITLE: str = Field(
        default="Example API",
        description="Title advertised in the OpenAPI document",
    )

    API_SERVER_URL: str = Field(
        default="http://localhost:8090",
        description="Server URL advertised in the OpenAPI document",
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Treat FOO= as unset so the default applies
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


class _MappingSettings(Settings):
    """Settings read only from constructor arguments."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings,)


def _configuration_error(exc: ValidationError) -> ConfigurationError:
    problems = []
    for error in exc.errors(include_url=False):
        name = ".".join(str(part) for part in error["loc"]) or "(settings)"
        problems.append(f"{name}: {error['msg']}")
    return ConfigurationError("Invalid configuration", problems)


def load_config(raw_env: Mapping[str, str]) -> Settings:
    """
    Parse an explicit mapping of environment variables into Settings.

    Only the given mapping is consulted (not os.environ, not .env).
    Unrecognized names are ignored; empty values count as absent.

    Args:
        raw_env: Variable name -> raw string value

    Returns:
        Frozen Settings instance

    Raises:
        ConfigurationError: If any present value cannot be coerced; lists
            every offending variable
    """
    known = {
        name: value
        for name, value in raw_env.items()
        if name in Settings.model_fields and value != ""
    }
    try:
        return _MappingSettings(**known)
    except ValidationError as e:
        raise _configuration_error(e) from e


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings built from the process environment and .env file.

    Using lru_cache ensures we only parse .env and validate once.

    Raises:
        ConfigurationError: If the environment holds an invalid value
    """
    try:
        return Settings()
    except ValidationError as e:
        raise _configuration_error(e) from e

