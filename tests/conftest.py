# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up a predictable environment before any application imports
# - Provides settings, app client and example-service fixtures
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# get_settings() reads the process environment; keep it deterministic

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "silent")
os.environ.setdefault("GENERATE_CLIENT", "false")
os.environ.setdefault("GENERATE_API_DOCS", "false")

import pytest
from fastapi.testclient import TestClient

from app.config import load_config
from app.main import create_app
from app.routers import routing as app_routing
from app.services import examples


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def settings():
    """Settings parsed from an explicit, minimal environment."""
    return load_config({
        "LOG_LEVEL": "silent",
        "COMPRESSION_ENABLED": "false",
        "GENERATE_CLIENT": "false",
        "GENERATE_API_DOCS": "false",
    })


@pytest.fixture
def routing():
    """The routing table the server uses."""
    return app_routing


@pytest.fixture
def client(settings, routing):
    """TestClient around a fully wired application."""
    with TestClient(create_app(settings, routing)) as test_client:
        yield test_client


@pytest.fixture
def example_service_ok(monkeypatch):
    """Make the example side effect always succeed."""
    async def never_fails(failure_rate: float = 0.5) -> str:
        return "ok"

    monkeypatch.setattr(examples, "example_with_random_throw", never_fails)


@pytest.fixture
def example_service_down(monkeypatch):
    """Make the example side effect always fail."""
    async def always_fails(failure_rate: float = 0.5) -> str:
        raise RuntimeError("service unavailable")

    monkeypatch.setattr(examples, "example_with_random_throw", always_fails)
