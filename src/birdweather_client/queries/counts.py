"""Aggregate counts: platform summaries, daily totals, and top species.

These endpoints return a single response rather than a paginated
connection, so they go through ``fetch_single`` instead of the paginator.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional, Union

from ..core.client import BirdWeatherClient, require_client
from ..core.errors import InvalidArgumentError
from ..core.flatten import (
    COUNTS_COLUMNS,
    DAILY_COUNT_COLUMNS,
    TOP_SPECIES_COLUMNS,
    column_names,
    flatten_node,
    flatten_nodes,
)
from ..core.paginator import fetch_single
from ..core.query_builder import FilterSet, QueryDocument, Variable
from ..core.results import FetchResult, FetchStatus
from ..core.validation import DateLike, bounding_box, id_list, period, text_list
from .common import NE, PERIOD, SPECIES_ID, SPECIES_IDS, STATION_IDS, STATION_TYPES, SW, extractor

logger = logging.getLogger(__name__)

COUNTS = QueryDocument(
    operation="counts",
    field_name="counts",
    paginated=False,
    filters=FilterSet([PERIOD, STATION_IDS, STATION_TYPES, SPECIES_ID, NE, SW]),
    selection="""
        detections
        species
        stations
    """,
)

_DAILY_FILTERS = FilterSet([PERIOD, STATION_IDS, SPECIES_IDS])

DAILY_DETECTION_COUNTS = QueryDocument(
    operation="dailyDetectionCounts",
    field_name="dailyDetectionCounts",
    paginated=False,
    filters=_DAILY_FILTERS,
    selection="""
        date
        dayOfYear
        total
    """,
)

DAILY_DETECTION_COUNTS_BY_SPECIES = QueryDocument(
    operation="dailyDetectionCounts",
    field_name="dailyDetectionCounts",
    paginated=False,
    filters=_DAILY_FILTERS,
    selection="""
        date
        dayOfYear
        total
        counts {
          count
          speciesId
        }
    """,
)

TOP_SPECIES = QueryDocument(
    operation="topSpecies",
    field_name="topSpecies",
    paginated=False,
    filters=FilterSet([Variable("limit", "Int"), PERIOD, STATION_IDS, STATION_TYPES]),
    selection="""
        speciesId
        count
        species { commonName scientificName }
        breakdown {
          almostCertain
          veryLikely
          unlikely
          uncertain
        }
    """,
)

IdArg = Union[str, int, Iterable[Any], None]
TextArg = Union[str, Iterable[str], None]


def _single(client: BirdWeatherClient, document: QueryDocument, values: dict, path: str,
            columns: List[str], to_rows: Callable[[Any], List[dict]]) -> FetchResult:
    """Run a one-shot aggregate query and shape its payload into rows."""
    bound = document.filters.bind(values)
    payload, errors = fetch_single(client, document, bound, extractor(path))

    result = FetchResult(columns=columns, requests_made=1)
    if errors:
        result.status = FetchStatus.FAILED
        result.errors = errors
        result.failed_page = 1
        result.note("API returned errors; no data retrieved.")
        return result

    result.rows = to_rows(payload) if payload else []
    if result.rows:
        result.status = FetchStatus.SUCCESS
        result.pages_fetched = 1
    else:
        logger.info("No data found for the specified filters.")
        result.note("No data found for the specified filters.")
    return result


def get_counts(client: BirdWeatherClient,
               from_: Optional[DateLike] = None,
               to: Optional[DateLike] = None,
               station_ids: IdArg = None,
               station_types: TextArg = None,
               species_id: Optional[Union[str, int]] = None,
               ne: Any = None,
               sw: Any = None) -> FetchResult:
    """Single-row snapshot of detections, species and stations for a period.

    For finer-grained summaries see :func:`get_daily_detection_counts`.
    """
    require_client(client)
    box = bounding_box(ne, sw)
    values = {
        "period": period(from_, to),
        "stationIds": id_list(station_ids),
        "stationTypes": text_list(station_types),
        "speciesId": str(species_id) if species_id is not None else None,
        "ne": box["ne"],
        "sw": box["sw"],
    }
    return _single(client, COUNTS, values, "counts", column_names(COUNTS_COLUMNS),
                   lambda counts: [flatten_node(counts, COUNTS_COLUMNS)])


def _pivot_daily(days: List[dict]) -> List[dict]:
    """One row per species per day from the nested per-day breakdown."""
    rows = []
    for day in days:
        base = flatten_node(day, DAILY_COUNT_COLUMNS)
        for entry in day.get("counts") or []:
            row = dict(base)
            row["species_id"] = entry.get("speciesId")
            row["count"] = entry.get("count")
            rows.append(row)
    return rows


def get_daily_detection_counts(client: BirdWeatherClient,
                               from_: Optional[DateLike] = None,
                               to: Optional[DateLike] = None,
                               station_ids: IdArg = None,
                               species_ids: IdArg = None,
                               by_species: bool = False) -> FetchResult:
    """Daily detection totals, optionally broken down by species.

    Returns:
        With ``by_species=False``: date, day_of_year, daily_total.
        With ``by_species=True``: date, day_of_year, daily_total, species_id,
        count; one row per species per day.
    """
    require_client(client)
    values = {
        "period": period(from_, to),
        "stationIds": id_list(station_ids),
        "speciesIds": id_list(species_ids),
    }

    columns = column_names(DAILY_COUNT_COLUMNS)
    if by_species:
        return _single(client, DAILY_DETECTION_COUNTS_BY_SPECIES, values, "dailyDetectionCounts",
                       columns + ["species_id", "count"], _pivot_daily)

    return _single(client, DAILY_DETECTION_COUNTS, values, "dailyDetectionCounts", columns,
                   lambda days: flatten_nodes(days, DAILY_COUNT_COLUMNS))


def get_top_species(client: BirdWeatherClient,
                    limit: int = 10,
                    from_: Optional[DateLike] = None,
                    to: Optional[DateLike] = None,
                    station_ids: IdArg = None,
                    station_types: TextArg = None) -> FetchResult:
    """Most frequently detected species for a period, with certainty breakdown."""
    require_client(client)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidArgumentError(f"'limit' must be a positive integer. Got: {limit!r}")

    values = {
        "limit": limit,
        "period": period(from_, to),
        "stationIds": id_list(station_ids),
        "stationTypes": text_list(station_types),
    }
    return _single(client, TOP_SPECIES, values, "topSpecies", column_names(TOP_SPECIES_COLUMNS),
                   lambda top: flatten_nodes(top, TOP_SPECIES_COLUMNS))
