"""Station queries."""

from typing import Any, Optional

from ..core.client import BirdWeatherClient, require_client
from ..core.flatten import STATION_COLUMNS, column_names, flatten_nodes
from ..core.paginator import ProgressCallback, paginate_query
from ..core.query_builder import FilterSet, QueryDocument, Variable
from ..core.results import FetchResult
from ..core.validation import DateLike, bounding_box, check_limit, period
from .common import NE, PERIOD, SW, extractor

# latestDetectionAt / earliestDetectionAt are left out: too slow server-side
STATIONS = QueryDocument(
    operation="stations",
    field_name="stations",
    filters=FilterSet([Variable("query", "String"), PERIOD, NE, SW]),
    selection="""
        nodes {
          id
          name
          type
          timezone
          country
          continent
          state
          location
          locationPrivacy
          coords { lat lon }
        }
        pageInfo { hasNextPage endCursor }
        totalCount
    """,
)


def get_stations(client: BirdWeatherClient,
                 query: Optional[str] = None,
                 from_: Optional[DateLike] = None,
                 to: Optional[DateLike] = None,
                 ne: Any = None,
                 sw: Any = None,
                 limit: Optional[int] = None,
                 on_page: Optional[ProgressCallback] = None) -> FetchResult:
    """Retrieve public stations, optionally filtered by name, period or bounding box.

    Args:
        client: Connected client.
        query: Search string matched against station names.
        from_: Period start; requires ``to``.
        to: Period end; requires ``from_``.
        ne: North-east corner; requires ``sw``.
        sw: South-west corner; requires ``ne``.
        limit: Maximum stations to return (None for all).
        on_page: Progress callback.

    Returns:
        Rows with station_id, station_name, station_type, station_timezone,
        station_country, station_continent, station_state, station_location,
        station_lat, station_lon, location_privacy.
    """
    require_client(client)
    duration = period(from_, to)
    box = bounding_box(ne, sw)
    limit = check_limit(limit)

    bound = STATIONS.filters.bind({
        "query": query,
        "period": duration,
        "ne": box["ne"],
        "sw": box["sw"],
    })

    return paginate_query(
        client, STATIONS, bound,
        extract=extractor("stations"),
        flatten=lambda nodes: flatten_nodes(nodes, STATION_COLUMNS),
        limit=limit,
        on_page=on_page,
        label="stations",
        columns=column_names(STATION_COLUMNS),
    ).run()
