"""
Test configuration and fixtures for the Prompt Gateway tests.

Provides isolated settings (no .env, no ambient environment), app/client
fixtures for both HTTP modes, and a fake enhancement pipeline.
"""

from __future__ import annotations

from typing import Any, List
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from prompt_gateway import config
from prompt_gateway.config import Settings
from prompt_gateway.main import create_app
from prompt_gateway.services.enhancer import EnhancementResult
from prompt_gateway.utils import throttle
from tests._helpers import make_settings

_ENV_VARS = (
    "OPENROUTER_API_KEY",
    "OPENROUTER_BASE_URL",
    "OPENROUTER_DEFAULT_MODEL",
    "KNOWN_MODELS",
    "WS_ENABLED",
    "SANITIZE_FAIL_OPEN",
    "LOG_DIR",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep ambient configuration and the request-slot semaphore out of tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WS_ENABLED", "false")
    config.get_settings.cache_clear()
    throttle._slots = None
    yield
    config.get_settings.cache_clear()
    throttle._slots = None


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_enhance(monkeypatch) -> AsyncMock:
    """Replace the pipeline entry point used by every transport."""
    calls: List[Any] = []

    async def _enhance(request, settings=None):
        calls.append(request)
        return EnhancementResult(
            enhanced=f"Enhanced: {request.prompt}",
            original=request.prompt,
            model=request.model or settings.openrouter_default_model,
        )

    mock = AsyncMock(side_effect=_enhance)
    mock.calls = calls
    monkeypatch.setattr("prompt_gateway.services.enhancer.enhance_prompt", mock)
    monkeypatch.setattr("prompt_gateway.mcp.dispatcher.enhance_prompt", mock)
    return mock


@pytest.fixture
def web_app(test_settings):
    return create_app("web", test_settings)


@pytest.fixture
def remote_app(test_settings):
    return create_app("remote-mcp", test_settings)


@pytest.fixture
def client(web_app):
    with TestClient(web_app) as test_client:
        yield test_client


@pytest.fixture
def remote_client(remote_app):
    with TestClient(remote_app) as test_client:
        yield test_client


def pytest_configure(config):
    """Configure custom test markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
