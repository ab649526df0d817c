"""Application runner with graceful shutdown support."""

import logging
import sys
import threading
from typing import NoReturn

from waitress import create_server

from cardinality_exporter.config import Settings
from cardinality_exporter.core.shutdown import LifetimeEvent
from cardinality_exporter.exceptions import ConfigurationError, RegistrationError

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _fail(message: str) -> NoReturn:
    logger.error(message)
    sys.exit(1)


def run(settings: Settings) -> None:
    """Run the exporter until SIGTERM/SIGINT.

    Startup errors (invalid configuration, collector registration conflict,
    failure to bind the listen port) are logged and exit the process with
    status 1 before any scrape is served.
    """
    configure_logging(settings.log_level)

    # Import here so logging is configured before the app modules log
    from cardinality_exporter import create_app

    try:
        app = create_app(settings)
    except ConfigurationError as e:
        _fail(f"Invalid configuration: {e}")
    except RegistrationError as e:
        _fail(f"Failed to register collector: {e}")

    try:
        server = create_server(
            app,
            host=settings.host,
            port=settings.port,
            threads=settings.waitress_threads,
        )
    except OSError as e:
        _fail(f"Failed to start server on {settings.listen_address}: {e}")

    shutdown_coordinator = app.container.shutdown_coordinator()
    shutdown_coordinator.initialize()

    stopped = threading.Event()

    def signal_stopped(lifetime_event: LifetimeEvent) -> None:
        if lifetime_event == LifetimeEvent.AFTER_SHUTDOWN:
            stopped.set()

    shutdown_coordinator.register_lifetime_notification(signal_stopped)

    def runner() -> None:
        logger.info(
            f"Starting server on {settings.listen_address} "
            f"with {settings.waitress_threads} threads"
        )
        server.run()

    # Run server in daemon thread so the shutdown coordinator controls exit
    thread = threading.Thread(target=runner, daemon=True, name="waitress")
    thread.start()

    stopped.wait()
    server.close()
    logger.info("Server stopped")
