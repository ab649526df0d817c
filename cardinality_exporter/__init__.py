"""Flask application factory."""

import logging

from cardinality_exporter.config import Settings
from cardinality_exporter.container import AppContainer
from cardinality_exporter.core.flask_app import App
from cardinality_exporter.core.shutdown import LifetimeEvent

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def create_app(
    settings: "Settings | None" = None,
    container: "AppContainer | None" = None,
) -> App:
    """Create and configure the Flask application.

    Validates the configuration, builds the service container and registers
    the cardinality collector with the metrics registry.

    Args:
        settings: Optional settings instance (loaded from the environment if
            not provided)
        container: Optional pre-built container, used by tests to override
            the transport or the registry

    Raises:
        ConfigurationError: If the settings are invalid
        RegistrationError: If the collector conflicts with registered metrics
    """
    app = App(__name__)

    if settings is None:
        settings = Settings.load()

    settings.validate_config()

    if container is None:
        container = AppContainer()
    container.config.override(settings)
    container.wire(modules=["cardinality_exporter.api.metrics"])

    app.container = container

    metrics_service = container.metrics_service()
    metrics_service.register_collector(container.cardinality_collector())

    cardinality_client = container.cardinality_client()

    def close_client(event: LifetimeEvent) -> None:
        if event == LifetimeEvent.SHUTDOWN:
            cardinality_client.close()

    container.shutdown_coordinator().register_lifetime_notification(close_client)

    from cardinality_exporter.api.metrics import metrics_bp

    app.register_blueprint(metrics_bp)

    logger.info(
        "Collecting cardinality for dimension %s from %s",
        settings.dimension,
        settings.address,
    )

    return app
