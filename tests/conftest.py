"""
Shared pytest fixtures for bssbridge tests.

This module provides common fixtures including:
- FakeClock: controllable millisecond clock for expiration/cooldown tests
- Queue instances wired to the fake clock
- FastAPI test client utilities
"""

import os
import sys
from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bssbridge.config.provider import APIConfig, AuthConfig, QueueConfig
from bssbridge.modules.queue import CommandQueue


# =============================================================================
# Clock
# =============================================================================

@dataclass
class FakeClock:
    """Millisecond clock that only moves when told to."""
    now: int = 1_700_000_000_000

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


# =============================================================================
# Queue
# =============================================================================

@pytest.fixture
def queue_config():
    """Defaults, with a small capacity so capacity tests stay short."""
    return QueueConfig(max_queue_size=3)


@pytest.fixture
def command_queue(queue_config, clock):
    return CommandQueue(queue_config, clock=clock)


# =============================================================================
# API
# =============================================================================

class StaticConfigProvider:
    """ConfigProvider returning fixed values instead of reading the environment."""

    def __init__(self, queue_config=None, api_key=None, require_auth=None):
        self.queue_config = queue_config or QueueConfig()
        self.api_key = api_key
        self.require_auth = api_key is not None if require_auth is None else require_auth

    def get_queue_config(self) -> QueueConfig:
        return self.queue_config

    def get_api_config(self) -> APIConfig:
        return APIConfig(port=8080, host="127.0.0.1", debug=False)

    def get_auth_config(self) -> AuthConfig:
        return AuthConfig(api_key=self.api_key, require_auth=self.require_auth)


TEST_API_KEY = "test-secret-key"


@pytest.fixture
def make_client(clock):
    """
    Build a TestClient around a fresh app.

    Usage:
        def test_something(make_client):
            client = make_client(api_key="secret", queue_config=QueueConfig(max_queue_size=1))
    """
    from bssbridge.main import create_app

    def _make(queue_config=None, api_key=TEST_API_KEY, require_auth=None, **client_kwargs):
        provider = StaticConfigProvider(queue_config, api_key=api_key, require_auth=require_auth)
        app = create_app(provider, clock=clock, enable_sweeper=False)
        client = TestClient(app, **client_kwargs)
        if api_key:
            client.headers["X-API-Key"] = api_key
        return client

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
