"""Shutdown coordinator driving the process lifetime.

SIGTERM and SIGINT start a shutdown that notifies registered listeners in
three phases. The runner waits for AFTER_SHUTDOWN before stopping the HTTP
server and exiting.
"""

import logging
import signal
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)


class LifetimeEvent(str, Enum):
    """Lifecycle events during shutdown process."""

    PREPARE_SHUTDOWN = "prepare-shutdown"
    SHUTDOWN = "shutdown"
    AFTER_SHUTDOWN = "after-shutdown"


class ShutdownCoordinatorProtocol(ABC):
    """Protocol for shutdown coordinator implementations."""

    @abstractmethod
    def initialize(self) -> None:
        """Install the signal handlers."""
        pass

    @abstractmethod
    def register_lifetime_notification(
        self, callback: Callable[[LifetimeEvent], None]
    ) -> None:
        """Register a callback for lifetime events."""
        pass

    @abstractmethod
    def is_shutting_down(self) -> bool:
        pass

    @abstractmethod
    def shutdown(self) -> None:
        """Run the shutdown sequence."""
        pass


class ShutdownCoordinator(ShutdownCoordinatorProtocol):
    """Signal-driven shutdown with ordered listener notification."""

    def __init__(self) -> None:
        self._shutting_down = False
        self._lock = threading.RLock()
        self._notifications: list[Callable[[LifetimeEvent], None]] = []

    def initialize(self) -> None:
        signal.signal(signal.SIGTERM, self._handle_signal)
        signal.signal(signal.SIGINT, self._handle_signal)

    def register_lifetime_notification(
        self, callback: Callable[[LifetimeEvent], None]
    ) -> None:
        with self._lock:
            self._notifications.append(callback)
            logger.debug(
                f"Registered lifetime notification: "
                f"{getattr(callback, '__name__', repr(callback))}"
            )

    def is_shutting_down(self) -> bool:
        with self._lock:
            return self._shutting_down

    def _handle_signal(self, signum: int, frame: object) -> None:
        logger.info(f"Received signal {signum}, shutting down")
        self.shutdown()

    def shutdown(self) -> None:
        with self._lock:
            if self._shutting_down:
                logger.warning("Shutdown already in progress, ignoring")
                return
            self._shutting_down = True

        for event in (
            LifetimeEvent.PREPARE_SHUTDOWN,
            LifetimeEvent.SHUTDOWN,
            LifetimeEvent.AFTER_SHUTDOWN,
        ):
            self._raise_lifetime_event(event)

    def _raise_lifetime_event(self, event: LifetimeEvent) -> None:
        logger.info(f"Raising lifetime event {event.value}")

        with self._lock:
            callbacks = list(self._notifications)

        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(
                    f"Error in lifetime event notification "
                    f"{getattr(callback, '__name__', repr(callback))}: {e}"
                )
