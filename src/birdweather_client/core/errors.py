"""Exception types raised by the BirdWeather client.

Usage errors are raised before any request is sent. Errors reported by the
server while a fetch is running are not raised; they are recorded on the
returned ``FetchResult`` instead.
"""

from typing import Optional


class BirdWeatherError(Exception):
    """Base class for all client errors."""


class UsageError(BirdWeatherError, ValueError):
    """A precondition of a query function was not met."""


class NotConnectedError(UsageError):
    """A query function was called without an open connection."""

    def __init__(self, message: str = "No API connection found. Please run connect() first."):
        super().__init__(message)


class InvalidArgumentError(UsageError):
    """A required argument is missing or malformed."""


class TransportError(BirdWeatherError):
    """The HTTP exchange with the GraphQL endpoint failed.

    Attributes:
        status_code: HTTP status of the response, or None when no response
            was received at all.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
