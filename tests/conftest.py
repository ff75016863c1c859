"""
Shared fixtures: a controllable clock, in-memory collaborators, an engine
wired to them, and Flask apps serving either router implementation.
"""
from datetime import datetime, timedelta, timezone

import pytest
from flask import Flask

from app import create_app
from src.config.testing import TestingConfig
from src.services.dependencies import Dependencies, create_test_dependencies
from src.services.hub_client import InMemoryHubClient
from src.services.lifecycle_engine import EngineSettings, LifecycleEngine
from src.services.storage_service import InMemorySubscriptionStore

CHANNEL_ID = "UCXuqSBlHAE6Xw-yeJA0Tunw"


def channel(n: int) -> str:
    """A valid, distinct channel id for index ``n``."""
    return f"UC{n:022d}"


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def service_app():
    """
    Bare app context for calling services directly; they log through
    current_app.logger like the rest of the app.
    """
    app = Flask("services")
    with app.app_context():
        yield app


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return InMemorySubscriptionStore()


@pytest.fixture
def hub(clock):
    return InMemoryHubClient(lease_seconds=86400, clock=clock)


@pytest.fixture
def engine(store, hub, clock):
    return LifecycleEngine(
        store=store,
        hub_client=hub,
        settings=EngineSettings(renewal_threshold_days=0.5, max_renewal_attempts=3),
        clock=clock,
    )


def build_app(flag, store, hub):
    config = type("FlagConfig", (TestingConfig,), {"USE_REFACTORED_ROUTER": flag})
    return create_app(config, dependencies=Dependencies(store=store, hub_client=hub))


@pytest.fixture(params=["", "true"], ids=["legacy", "refactored"])
def app(request):
    """The app under both serving implementations, against the real clock."""
    deps = create_test_dependencies()
    return build_app(request.param, deps.store, deps.hub_client)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_store(app):
    return app.extensions["lifecycle_engine"].store


@pytest.fixture
def app_hub(app):
    return app.extensions["lifecycle_engine"].hub_client
