"""Argument checks and conversions shared by the query functions.

All of these run before any request is sent and raise
:class:`InvalidArgumentError` on bad input.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from .errors import InvalidArgumentError

ISO8601_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")
ISO8601_EXAMPLE = "2025-05-01T00:00:00.000Z"

DateLike = Union[str, date, datetime]


def to_iso8601(value: DateLike, name: str = "from") -> str:
    """Normalize a date-time argument to ``YYYY-MM-DDTHH:MM:SS.mmmZ``.

    Naive datetimes are taken to be UTC; aware ones are converted. Plain
    dates map to midnight UTC. Strings are checked, not reformatted.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"

    if isinstance(value, date):
        return to_iso8601(datetime.combine(value, time.min), name)

    if not isinstance(value, str) or not ISO8601_PATTERN.match(value):
        raise InvalidArgumentError(
            f"'{name}' must be in ISO8601 format with zero-padded month and day "
            f"(e.g. '{ISO8601_EXAMPLE}'). Got: {value!r}"
        )

    try:
        datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%fZ")
    except ValueError as e:
        raise InvalidArgumentError(f"'{name}' is not a valid date-time: {value!r}") from e

    return value


def period(from_: Optional[DateLike], to: Optional[DateLike]) -> Optional[Dict[str, str]]:
    """Build an ``InputDuration`` value, or None when neither bound is set."""
    if from_ is None and to is None:
        return None
    if from_ is None or to is None:
        raise InvalidArgumentError("'from' and 'to' must be given together.")
    return {"from": to_iso8601(from_, "from"), "to": to_iso8601(to, "to")}


def location(value: Any, name: str) -> Dict[str, float]:
    """Build an ``InputLocation`` from a ``{"lat", "lon"}`` mapping or a pair."""
    if isinstance(value, (str, bytes)):
        raise InvalidArgumentError(
            f"'{name}' must be a mapping with 'lat' and 'lon' (e.g. {{'lat': 42.0, 'lon': -85.0}}). Got: {value!r}"
        )
    try:
        if isinstance(value, dict):
            lat, lon = value["lat"], value["lon"]
        else:
            lat, lon = value
        return {"lat": float(lat), "lon": float(lon)}
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidArgumentError(
            f"'{name}' must be a mapping with 'lat' and 'lon' (e.g. {{'lat': 42.0, 'lon': -85.0}}). Got: {value!r}"
        ) from e


def bounding_box(ne: Any, sw: Any) -> Dict[str, Optional[Dict[str, float]]]:
    """Validate a north-east / south-west corner pair."""
    if ne is None and sw is None:
        return {"ne": None, "sw": None}
    if ne is None or sw is None:
        raise InvalidArgumentError("'ne' and 'sw' must be given together.")
    return {"ne": location(ne, "ne"), "sw": location(sw, "sw")}


def id_list(values: Optional[Union[str, int, Iterable[Any]]]) -> Optional[List[str]]:
    """Coerce one id or an iterable of ids into a list of strings."""
    if values is None:
        return None
    if isinstance(values, (str, int)):
        return [str(values)]
    return [str(v) for v in values]


def text_list(values: Optional[Union[str, Iterable[str]]]) -> Optional[List[str]]:
    if values is None:
        return None
    if isinstance(values, str):
        return [values]
    return list(values)


def check_limit(limit: Optional[int], name: str = "limit") -> Optional[int]:
    """Accept None or a non-negative integer."""
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise InvalidArgumentError(f"'{name}' must be a non-negative integer or None. Got: {limit!r}")
    return limit
