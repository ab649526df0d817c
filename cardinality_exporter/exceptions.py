"""Exceptions raised by the cardinality exporter."""


class ConfigurationError(Exception):
    """Raised when application configuration is invalid."""

    pass


class RegistrationError(Exception):
    """Raised when a collector conflicts with an already registered metric."""

    pass


class CardinalityClientError(Exception):
    """Base exception for failures talking to the cardinality API."""

    def __init__(self, message: str, url: str | None = None) -> None:
        self.message = message
        self.url = url
        super().__init__(message)


class TransportError(CardinalityClientError):
    """Raised when the backend cannot be reached or the deadline elapses."""

    pass


class ResponseStatusError(CardinalityClientError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        super().__init__(f"Unexpected status {status_code} from {url}", url=url)


class DecodeError(CardinalityClientError):
    """Raised when the response body does not match the expected schema."""

    pass
