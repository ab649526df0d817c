"""Pytest fixtures for the cardinality exporter tests.

The cardinality backend is replaced by an httpx.MockTransport and every test
gets its own CollectorRegistry, so nothing touches the network or the global
Prometheus registry.
"""

from collections.abc import Generator

import pytest
from dependency_injector import providers
from flask import Flask
from flask.testing import FlaskClient
from prometheus_client import CollectorRegistry

from cardinality_exporter import create_app
from cardinality_exporter.config import Settings
from cardinality_exporter.container import AppContainer
from tests.testing_utils import FakeBackend

_ENV_VARS = (
    "PROMETHEUS_ADDRESS",
    "PROMETHEUS_USER",
    "PROMETHEUS_PASSWORD",
    "PROMETHEUS_HEADERS",
    "DIMENSION",
    "SELECTOR",
    "TIMEOUT_SECONDS",
    "HOST",
    "PORT",
    "WAITRESS_THREADS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the host environment from leaking into configuration tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _build_test_settings() -> Settings:
    """Construct base Settings object for tests."""
    return Settings(
        address="http://mimir.test",
        user="",
        headers=[],
        dimension="job",
        selector="",
        timeout_seconds=5.0,
        host="127.0.0.1",
        port=8080,
        waitress_threads=1,
        log_level="INFO",
    )


@pytest.fixture
def test_settings() -> Settings:
    return _build_test_settings()


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def container(
    backend: FakeBackend, registry: CollectorRegistry
) -> Generator[AppContainer, None, None]:
    """Container whose client talks to the fake backend."""
    container = AppContainer()
    container.transport.override(providers.Object(backend.transport()))
    container.registry.override(providers.Object(registry))

    yield container

    container.unwire()


@pytest.fixture
def app(test_settings: Settings, container: AppContainer) -> Flask:
    return create_app(test_settings, container=container)


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()
