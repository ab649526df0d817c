"""Prometheus metrics service.

Owns the collector registry the /metrics endpoint renders. Collectors are
registered explicitly at startup through register_collector(), which turns
a metric name conflict into a RegistrationError instead of failing later
during a scrape.
"""

import logging
from typing import TYPE_CHECKING

from prometheus_client import REGISTRY, CollectorRegistry, Gauge, generate_latest
from prometheus_client.registry import Collector

from cardinality_exporter.core.shutdown import LifetimeEvent
from cardinality_exporter.exceptions import RegistrationError

if TYPE_CHECKING:
    from cardinality_exporter.core.shutdown import ShutdownCoordinatorProtocol

logger = logging.getLogger(__name__)


class MetricsService:
    """Registry owner and exposition renderer."""

    def __init__(
        self,
        shutdown_coordinator: "ShutdownCoordinatorProtocol",
        registry: CollectorRegistry = REGISTRY,
    ):
        """Initialize metrics service.

        Args:
            shutdown_coordinator: Coordinator for graceful shutdown.
            registry: Registry collectors are added to and rendered from.
        """
        self.registry = registry

        shutdown_coordinator.register_lifetime_notification(self._on_lifetime_event)

        self.application_shutting_down = Gauge(
            "application_shutting_down",
            "Whether application is shutting down (1=yes, 0=no)",
            registry=registry,
        )

    def register_collector(self, collector: Collector) -> None:
        """Register a collector with the registry.

        Raises:
            RegistrationError: If the collector's metrics conflict with
                metrics that are already registered.
        """
        try:
            self.registry.register(collector)
        except ValueError as e:
            raise RegistrationError(f"Failed to register collector: {e}") from e

        logger.info(f"Registered collector {type(collector).__name__}")

    def get_metrics_text(self) -> str:
        """Generate metrics in Prometheus text format."""
        return generate_latest(self.registry).decode("utf-8")

    def set_shutdown_state(self, is_shutting_down: bool) -> None:
        self.application_shutting_down.set(1 if is_shutting_down else 0)

    def _on_lifetime_event(self, event: LifetimeEvent) -> None:
        if event == LifetimeEvent.PREPARE_SHUTDOWN:
            self.set_shutdown_state(True)
