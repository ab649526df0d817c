"""Application dependency injection container."""

import httpx
from dependency_injector import containers, providers
from prometheus_client import REGISTRY

from cardinality_exporter.config import Settings
from cardinality_exporter.core.shutdown import ShutdownCoordinator
from cardinality_exporter.services.cardinality_client import CardinalityClient
from cardinality_exporter.services.cardinality_collector import CardinalityCollector
from cardinality_exporter.services.metrics_service import MetricsService


class AppContainer(containers.DeclarativeContainer):
    """Application service container.

    ``config`` must be overridden with a Settings instance. Tests override
    ``transport`` and ``registry`` to isolate the backend and the metrics.
    """

    config = providers.Dependency(instance_of=Settings)

    registry = providers.Object(REGISTRY)

    # Transport the client dispatches to after request middleware ran
    transport = providers.Singleton(httpx.HTTPTransport)

    shutdown_coordinator = providers.Singleton(ShutdownCoordinator)

    metrics_service = providers.Singleton(
        MetricsService,
        shutdown_coordinator=shutdown_coordinator,
        registry=registry,
    )

    cardinality_client = providers.Singleton(
        CardinalityClient,
        address=config.provided.address,
        user=config.provided.user,
        password=config.provided.password.get_secret_value.call(),
        headers=config.provided.headers,
        transport=transport,
        timeout=config.provided.timeout_seconds,
    )

    cardinality_collector = providers.Singleton(
        CardinalityCollector,
        client=cardinality_client,
        dimension=config.provided.dimension,
        selector=config.provided.selector,
        timeout=config.provided.timeout_seconds,
    )
