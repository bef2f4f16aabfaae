"""birdweather_client package

Typed query functions over the BirdWeather GraphQL API, returning flat tables.

Example:
    >>> from birdweather_client import connect, get_detections
    >>> client = connect()
    >>> dets = get_detections(client, from_="2025-05-01T00:00:00.000Z",
    ...                       to="2025-05-02T00:00:00.000Z", limit=1000)
"""

from .config.settings import ClientConfig
from .core.client import BirdWeatherClient, connect
from .core.errors import BirdWeatherError, InvalidArgumentError, NotConnectedError, TransportError, UsageError
from .core.paginator import Paginator
from .core.results import FetchResult, FetchStatus, PageProgress
from .queries import (
    find_species,
    get_counts,
    get_daily_detection_counts,
    get_detections,
    get_environment_data,
    get_light_data,
    get_species_info,
    get_stations,
    get_tod_counts,
    get_top_species,
)

__all__ = [
    "__version__",
    "BirdWeatherClient",
    "BirdWeatherError",
    "ClientConfig",
    "FetchResult",
    "FetchStatus",
    "InvalidArgumentError",
    "NotConnectedError",
    "PageProgress",
    "Paginator",
    "TransportError",
    "UsageError",
    "connect",
    "find_species",
    "get_counts",
    "get_daily_detection_counts",
    "get_detections",
    "get_environment_data",
    "get_light_data",
    "get_species_info",
    "get_stations",
    "get_tod_counts",
    "get_top_species",
]

# Keep version in one place (matches pyproject.toml)
__version__ = "0.1.0"


def info() -> str:
    """Return a short informational string for quick manual checks.

    Example:
        >>> import birdweather_client
        >>> birdweather_client.info()
        'birdweather_client 0.1.0'
    """
    return f"birdweather_client {__version__}"
