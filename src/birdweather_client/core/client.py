"""Connection handle for the BirdWeather GraphQL API.

A :class:`BirdWeatherClient` is created once with :func:`connect` and passed
explicitly into every query function. There is no module-level connection.

Example::

    >>> from birdweather_client import connect
    >>> from birdweather_client.queries.stations import get_stations
    >>> client = connect()
    >>> stations = get_stations(client, query="backyard", limit=10)
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from ..config.settings import ClientConfig
from .errors import NotConnectedError, TransportError

logger = logging.getLogger(__name__)


@dataclass
class BirdWeatherClient:
    """HTTP client for the BirdWeather GraphQL endpoint.

    Every call is a single blocking POST. Nothing is retried: failed requests
    surface as :class:`TransportError` and the caller decides what to do.

    Attributes:
        config: Endpoint, timeout and page size settings.
        session: HTTP session used for all requests.
        connected: False once :meth:`close` has been called.
    """

    config: ClientConfig = field(default_factory=ClientConfig)
    session: requests.Session = field(default_factory=requests.Session)
    connected: bool = True

    def __post_init__(self):
        self.session.headers.update({
            "User-Agent": self.config.user_agent,
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    @property
    def page_size(self) -> int:
        return self.config.page_size

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GraphQL document and return the parsed response body.

        Args:
            query: The GraphQL document.
            variables: Values for the document's declared variables.

        Returns:
            The JSON body, a dict with ``data`` and optionally ``errors``.
            GraphQL errors are returned, not raised.

        Raises:
            NotConnectedError: If the client has been closed.
            TransportError: On network failure, a non-JSON body, or an HTTP
                error status without a GraphQL ``errors`` payload.
        """
        if not self.connected:
            raise NotConnectedError()

        payload = {"query": query, "variables": variables or {}}

        try:
            response = self.session.post(self.config.endpoint, json=payload, timeout=self.config.timeout)
        except requests.RequestException as e:
            logger.error(f"Network error: {e}")
            raise TransportError(f"Request to {self.config.endpoint} failed: {e}") from e

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise TransportError(
                f"Invalid JSON response from server (HTTP {response.status_code})",
                status_code=response.status_code,
            ) from e

        if not isinstance(data, dict):
            raise TransportError("GraphQL response was not a JSON object", status_code=response.status_code)

        if response.status_code >= 400 and not data.get("errors"):
            raise TransportError(f"HTTP {response.status_code} from server", status_code=response.status_code)

        if data.get("errors"):
            logger.error(f"GraphQL Errors: {data['errors']}")

        return data

    def close(self) -> None:
        """Close the underlying session. Later calls fail with NotConnectedError."""
        self.session.close()
        self.connected = False


def connect(config: Optional[ClientConfig] = None, session: Optional[requests.Session] = None) -> BirdWeatherClient:
    """Open a connection to the BirdWeather API.

    Must be called once before using any query function; the returned client
    is then passed to each of them.

    Args:
        config: Connection settings. Defaults to ``ClientConfig()``.
        session: Optional pre-configured ``requests.Session``.

    Returns:
        A connected :class:`BirdWeatherClient`.
    """
    config = config or ClientConfig()
    client = BirdWeatherClient(config=config, session=session or requests.Session())
    logger.info(f"Connected to BirdWeather API at {config.endpoint}")
    return client


def require_client(client: Optional[BirdWeatherClient]) -> BirdWeatherClient:
    """Fail fast when no usable connection was supplied."""
    if client is None or not getattr(client, "connected", False):
        raise NotConnectedError()
    return client
