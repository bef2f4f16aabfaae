"""Time-of-day activity patterns for one species.

Each row is one 30-minute bin. Useful for dawn chorus or nocturnal
activity plots. The endpoint may only return data for frequently detected
species.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from ..core.client import BirdWeatherClient, require_client
from ..core.errors import InvalidArgumentError
from ..core.paginator import fetch_single
from ..core.query_builder import FilterSet, QueryDocument, Variable
from ..core.results import FetchResult, FetchStatus, combine_status
from ..core.validation import DateLike, bounding_box, id_list, period
from .common import CONFIDENCE_GTE, NE, PERIOD, SPECIES_ID, STATION_IDS, SW, extractor

logger = logging.getLogger(__name__)

# Below this many detections the pattern is flagged as unreliable
MIN_RELIABLE_COUNT = 100

HALF_HOUR_BINS = [h / 2 for h in range(48)]

TIME_OF_DAY_COUNTS = QueryDocument(
    operation="timeOfDayDetectionCounts",
    field_name="timeOfDayDetectionCounts",
    paginated=False,
    filters=FilterSet([
        SPECIES_ID,
        PERIOD,
        STATION_IDS,
        CONFIDENCE_GTE,
        NE,
        SW,
        Variable("timeOfDayGte", "Int"),
        Variable("timeOfDayLte", "Int"),
    ]),
    selection="""
        speciesId
        count
        bins {
          key
          count
        }
    """,
)


def _half_hours(value: Optional[float], name: str) -> Optional[int]:
    """Fractional hours to the server's half-hour units."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 24:
        raise InvalidArgumentError(f"'{name}' must be a fractional hour between 0 and 24. Got: {value!r}")
    return int(value * 2)


def _fetch_bins(client: BirdWeatherClient, values: Dict[str, Any]) -> FetchResult:
    result = FetchResult(columns=["species_id", "hour", "count"], requests_made=1)
    bound = TIME_OF_DAY_COUNTS.filters.bind(values)
    payload, errors = fetch_single(client, TIME_OF_DAY_COUNTS, bound, extractor("timeOfDayDetectionCounts"))

    if errors:
        result.status = FetchStatus.FAILED
        result.errors = errors
        result.failed_page = 1
        return result

    if not payload or not payload[0].get("bins"):
        return result

    entry = payload[0]
    result.rows = [
        {"species_id": entry.get("speciesId"), "hour": b.get("key"), "count": b.get("count")}
        for b in entry["bins"]
    ]
    result.status = FetchStatus.SUCCESS
    result.pages_fetched = 1
    return result


def _fill_zero_bins(rows: List[Dict[str, Any]], species_id: str) -> List[Dict[str, Any]]:
    """Complete the half-hour grid for every station, with zero counts."""
    by_key = {(r["station_id"], r["hour"]): r for r in rows}
    filled = []
    for station_id in sorted({r["station_id"] for r in rows}):
        for hour in HALF_HOUR_BINS:
            row = by_key.get((station_id, hour))
            if row is None:
                row = {"station_id": station_id, "species_id": species_id, "hour": hour, "count": 0}
            filled.append(row)
    return filled


def _total(rows: List[Dict[str, Any]]) -> int:
    return sum(r["count"] or 0 for r in rows)


def get_tod_counts(client: BirdWeatherClient,
                   species_id: Optional[Union[str, int]] = None,
                   from_: Optional[DateLike] = None,
                   to: Optional[DateLike] = None,
                   station_ids: Union[str, int, Iterable[Any], None] = None,
                   confidence_gte: Optional[float] = None,
                   ne: Any = None,
                   sw: Any = None,
                   time_of_day_gte: Optional[float] = None,
                   time_of_day_lte: Optional[float] = None,
                   by_station: bool = False,
                   fill_zeros: bool = False) -> FetchResult:
    """Detection counts binned by time of day for a single species.

    Args:
        client: Connected client.
        species_id: Species id (required). See :func:`find_species`.
        from_: Period start; requires ``to``.
        to: Period end; requires ``from_``.
        station_ids: Station id or ids.
        confidence_gte: Minimum confidence.
        ne: North-east corner; requires ``sw``.
        sw: South-west corner; requires ``ne``.
        time_of_day_gte: Earliest time of day, as a fractional hour (6.5 = 6:30am).
        time_of_day_lte: Latest time of day, as a fractional hour.
        by_station: One request per station, rows tagged with station_id.
            Requires ``station_ids``.
        fill_zeros: With ``by_station``, add zero-count rows for every
            half-hour bin a station did not report.

    Returns:
        Rows with species_id, hour, count, plus a leading station_id column
        when ``by_station`` is set.
    """
    require_client(client)
    duration = period(from_, to)

    if species_id is None:
        raise InvalidArgumentError("species_id is required for get_tod_counts(). "
                                   "Use find_species() to look up species IDs.")

    station_ids = id_list(station_ids)
    if by_station and not station_ids:
        raise InvalidArgumentError("station_ids must be provided when by_station = True.")

    box = bounding_box(ne, sw)
    species_id = str(species_id)
    values = {
        "speciesId": species_id,
        "period": duration,
        "confidenceGte": confidence_gte,
        "ne": box["ne"],
        "sw": box["sw"],
        "timeOfDayGte": _half_hours(time_of_day_gte, "time_of_day_gte"),
        "timeOfDayLte": _half_hours(time_of_day_lte, "time_of_day_lte"),
    }

    if not by_station:
        result = _fetch_bins(client, dict(values, stationIds=station_ids))
        if result.status is FetchStatus.FAILED:
            result.note("API returned errors; no data retrieved.")
            return result
        if not result.rows:
            message = (f"No time of day data found for species {species_id}. "
                       "This endpoint may only return data for frequently detected species.")
            logger.info(message)
            result.note(message)
            return result
        if _total(result.rows) < MIN_RELIABLE_COUNT:
            message = "Fewer than 100 detections found for this species. Time-of-day pattern may not be reliable."
            logger.warning(message)
            result.note(message)
        return result

    per_station: List[FetchResult] = []
    combined = FetchResult(columns=["station_id", "species_id", "hour", "count"])
    for i, sid in enumerate(station_ids, start=1):
        logger.info(f"Fetching TOD counts for station {i}/{len(station_ids)}...")
        station_result = _fetch_bins(client, dict(values, stationIds=[sid]))
        for row in station_result.rows:
            combined.rows.append({"station_id": sid, **row})
        combined.pages_fetched += station_result.pages_fetched
        combined.requests_made += station_result.requests_made
        combined.errors.extend(station_result.errors)
        if station_result.status is FetchStatus.FAILED:
            combined.note(f"API returned errors for station {sid}; skipped.")
        per_station.append(station_result)

    combined.status = combine_status(per_station)

    if not combined.rows:
        message = "No time of day data found for any of the specified stations."
        logger.info(message)
        combined.note(message)
        return combined

    if _total(combined.rows) < MIN_RELIABLE_COUNT:
        message = ("Fewer than 100 total detections found across all stations. "
                   "Time-of-day pattern may not be reliable.")
        logger.warning(message)
        combined.note(message)

    if fill_zeros:
        combined.rows = _fill_zero_bins(combined.rows, species_id)

    return combined
