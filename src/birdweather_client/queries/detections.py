"""Detection queries.

Example::

    >>> client = connect()
    >>> dets = get_detections(
    ...     client,
    ...     from_="2025-05-12T00:00:00.000Z",
    ...     to="2025-05-18T00:00:00.000Z",
    ...     ne={"lat": 42.0, "lon": -85.0},
    ...     sw={"lat": 36.0, "lon": -96.0},
    ...     limit=10000,
    ... )
    >>> dets.column("common_name")[:3]
"""

import logging
from typing import Any, Iterable, Optional, Union

from ..core.client import BirdWeatherClient, require_client
from ..core.flatten import DETECTION_COLUMNS, column_names, flatten_nodes
from ..core.paginator import ProgressCallback, paginate_query
from ..core.query_builder import FilterSet, QueryDocument
from ..core.results import FetchResult, FetchStatus, empty_result
from ..core.validation import DateLike, bounding_box, check_limit, id_list, period, text_list
from .common import (
    CONFIDENCE_GTE,
    CONTINENTS,
    COUNTRIES,
    NE,
    PERIOD,
    SPECIES_IDS,
    STATION_IDS,
    STATION_TYPES,
    SW,
    extractor,
)
from .species import resolve_species_names

logger = logging.getLogger(__name__)

DETECTIONS = QueryDocument(
    operation="detections",
    field_name="detections",
    filters=FilterSet([
        PERIOD,
        STATION_IDS,
        STATION_TYPES,
        SPECIES_IDS,
        CONTINENTS,
        COUNTRIES,
        CONFIDENCE_GTE,
        NE,
        SW,
    ]),
    selection="""
        nodes {
          id
          timestamp
          confidence
          score
          coords { lat lon }
          species { id commonName scientificName }
          station {
            id name type timezone
            country continent state location
            coords { lat lon }
          }
        }
        pageInfo { hasNextPage endCursor }
        totalCount
    """,
)

IdArg = Union[str, int, Iterable[Any], None]
TextArg = Union[str, Iterable[str], None]


def get_detections(client: BirdWeatherClient,
                   from_: Optional[DateLike] = None,
                   to: Optional[DateLike] = None,
                   station_ids: IdArg = None,
                   station_types: TextArg = None,
                   species_ids: IdArg = None,
                   species_names: TextArg = None,
                   continents: TextArg = None,
                   countries: TextArg = None,
                   confidence_gte: Optional[float] = None,
                   ne: Any = None,
                   sw: Any = None,
                   limit: Optional[int] = None,
                   on_page: Optional[ProgressCallback] = None) -> FetchResult:
    """Retrieve detections matching the given filters.

    Pagination is automatic, 250 per request, up to ``limit`` rows (None
    fetches everything). Nested coords, species and station fields are
    expanded into flat columns.

    Args:
        client: Connected client.
        from_: Period start, ``YYYY-MM-DDTHH:MM:SS.mmmZ`` or a datetime.
        to: Period end; must be given together with ``from_``.
        station_ids: Station id or ids.
        station_types: Station types, e.g. "puc", "birdnetpi", "app".
        species_ids: Species id or ids.
        species_names: Common or scientific names, resolved through
            :func:`find_species`. Names matching several species are reported
            in ``result.ambiguous`` and skipped. A lookup that fails makes
            the result FAILED, or PARTIAL when detections were still fetched.
        continents: Continent names.
        countries: Country names.
        confidence_gte: Minimum confidence (0-1).
        ne: North-east corner ``{"lat", "lon"}``; requires ``sw``.
        sw: South-west corner ``{"lat", "lon"}``; requires ``ne``.
        limit: Maximum rows to return.
        on_page: Called with a ``PageProgress`` after every page.

    Returns:
        A FetchResult whose rows have the 19 detection columns.
    """
    require_client(client)
    columns = column_names(DETECTION_COLUMNS)

    duration = period(from_, to)
    box = bounding_box(ne, sw)
    limit = check_limit(limit)
    species_ids = id_list(species_ids)

    resolution = None
    if species_names:
        resolution = resolve_species_names(client, species_names)
        if not resolution.ids:
            result = empty_result(columns, "No species could be resolved. Returning empty result.")
            result.messages[:0] = resolution.messages
            result.ambiguous = resolution.ambiguous
            if resolution.errors:
                result.status = FetchStatus.FAILED
                result.errors = list(resolution.errors)
            logger.info("No species could be resolved. Returning empty result.")
            return result
        species_ids = list(dict.fromkeys((species_ids or []) + resolution.ids))

    bound = DETECTIONS.filters.bind({
        "period": duration,
        "stationIds": id_list(station_ids),
        "stationTypes": text_list(station_types),
        "speciesIds": species_ids,
        "continents": text_list(continents),
        "countries": text_list(countries),
        "confidenceGte": confidence_gte,
        "ne": box["ne"],
        "sw": box["sw"],
    })

    result = paginate_query(
        client, DETECTIONS, bound,
        extract=extractor("detections"),
        flatten=lambda nodes: flatten_nodes(nodes, DETECTION_COLUMNS),
        limit=limit,
        on_page=on_page,
        label="detections",
        columns=columns,
    ).run()

    if resolution is not None:
        result.messages[:0] = resolution.messages
        result.ambiguous = resolution.ambiguous
        if resolution.errors:
            result.errors[:0] = resolution.errors
            result.status = FetchStatus.PARTIAL if result.rows else FetchStatus.FAILED
    return result
