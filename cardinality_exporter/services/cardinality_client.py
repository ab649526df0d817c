"""HTTP client for the Mimir cardinality API.

The client issues two read-only queries (label_values and label_names) and
decodes the JSON bodies into strict pydantic models. It owns no retry or
caching policy; every call is a single GET bounded by its timeout.

Outgoing requests are decorated by an ordered list of request middleware
functions installed as httpx request event hooks. httpx runs those hooks
right before handing the request to the transport, so the effective order is:
basic auth, static headers, then the caller-supplied transport.
"""

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from cardinality_exporter.exceptions import (
    DecodeError,
    ResponseStatusError,
    TransportError,
)
from cardinality_exporter.schemas.cardinality import (
    LabelNamesResponse,
    LabelValuesResponse,
)

logger = logging.getLogger(__name__)

LABEL_VALUES_PATH = "/prometheus/api/v1/cardinality/label_values"
LABEL_NAMES_PATH = "/prometheus/api/v1/cardinality/label_names"

RequestMiddleware = Callable[[httpx.Request], None]

_ResponseT = TypeVar("_ResponseT", bound=BaseModel)


def basic_auth_middleware(user: str, password: str) -> RequestMiddleware:
    """Return middleware that sets a basic ``Authorization`` header."""
    auth = httpx.BasicAuth(user, password)

    def apply_basic_auth(request: httpx.Request) -> None:
        # BasicAuth's flow sets the header on its first step
        next(auth.auth_flow(request))

    return apply_basic_auth


def static_headers_middleware(
    headers: Iterable[tuple[str, str]],
) -> RequestMiddleware:
    """Return middleware that appends static headers to every request.

    Repeated names are kept as separate header lines, never overwritten.
    """
    pairs = [(name.encode(), value.encode()) for name, value in headers]

    def apply_static_headers(request: httpx.Request) -> None:
        request.headers = httpx.Headers([*request.headers.raw, *pairs])

    return apply_static_headers


def build_request_middleware(
    user: str = "",
    password: str = "",
    headers: Iterable[tuple[str, str]] = (),
) -> list[RequestMiddleware]:
    """Build the ordered middleware list applied before dispatch."""
    middleware: list[RequestMiddleware] = []

    if user or password:
        middleware.append(basic_auth_middleware(user, password))

    header_pairs = list(headers)
    if header_pairs:
        middleware.append(static_headers_middleware(header_pairs))

    return middleware


class CardinalityClient:
    """Stateless client for the cardinality endpoints.

    The underlying httpx.Client keeps a connection pool that is safe to share
    between concurrent scrapes.
    """

    def __init__(
        self,
        address: str,
        user: str = "",
        password: str = "",
        headers: Iterable[tuple[str, str]] = (),
        transport: httpx.BaseTransport | None = None,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the client.

        Args:
            address: Base URL of the backend, optionally with a path prefix
            user: Basic auth user; auth is only applied if user or password is set
            password: Basic auth password
            headers: Static ``(name, value)`` pairs added to every request
            transport: Transport requests are dispatched to (default HTTPTransport)
            timeout: Default per-call timeout in seconds
        """
        self.address = address.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            transport=transport if transport is not None else httpx.HTTPTransport(),
            timeout=timeout,
            event_hooks={
                "request": build_request_middleware(user, password, headers),
            },
        )

    def label_values_cardinality(
        self,
        label_names: Sequence[str],
        selector: str = "",
        timeout: float | None = None,
    ) -> LabelValuesResponse:
        """Fetch the per-label-value series breakdown for the given label names.

        Args:
            label_names: Label names to break down, sent as repeated label_names[]
            selector: Optional series selector; omitted from the request if empty
            timeout: Deadline for this call in seconds (client default if None)

        Raises:
            TransportError: If the request fails or the deadline elapses
            ResponseStatusError: If the backend answers with a non-2xx status
            DecodeError: If the body does not match LabelValuesResponse
        """
        params: list[tuple[str, str]] = [
            ("label_names[]", name) for name in label_names
        ]
        if selector:
            params.append(("selector", selector))

        return self._get(LABEL_VALUES_PATH, params, LabelValuesResponse, timeout)

    def label_names_cardinality(
        self,
        selector: str = "",
        timeout: float | None = None,
    ) -> LabelNamesResponse:
        """Fetch the number of distinct values per label name.

        The selector parameter is always sent, even when empty.
        """
        params = [("selector", selector)]
        return self._get(LABEL_NAMES_PATH, params, LabelNamesResponse, timeout)

    def close(self) -> None:
        """Close pooled connections."""
        self._client.close()

    def _get(
        self,
        path: str,
        params: list[tuple[str, str]],
        response_type: type[_ResponseT],
        timeout: float | None,
    ) -> _ResponseT:
        url = f"{self.address}{path}"
        timeout = timeout if timeout is not None else self.timeout
        deadline = time.monotonic() + timeout

        try:
            with self._client.stream("GET", url, params=params, timeout=timeout) as response:
                if not response.is_success:
                    raise ResponseStatusError(response.status_code, url)
                content = self._read_body(response, url, deadline)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request to {url} timed out: {e}", url=url) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e

        try:
            result = response_type.model_validate_json(content)
        except ValidationError as e:
            raise DecodeError(
                f"Failed to decode response from {url}: {e}", url=url
            ) from e

        logger.debug("Fetched %s from %s", response_type.__name__, url)
        return result

    @staticmethod
    def _read_body(response: httpx.Response, url: str, deadline: float) -> bytes:
        # The read timeout restarts on every recv, so a body trickled in small
        # chunks is bounded by the overall deadline instead.
        chunks = []
        for chunk in response.iter_bytes():
            if time.monotonic() > deadline:
                raise TransportError(
                    f"Request to {url} exceeded its deadline while reading the body",
                    url=url,
                )
            chunks.append(chunk)
        return b"".join(chunks)
