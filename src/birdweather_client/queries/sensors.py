"""PUC sensor histories: environment and spectral light readings.

Both histories are paginated connections nested under
``station(id:) { sensors { ... } }`` and returned as ``edges { node }``.
Several stations can be requested at once; each gets its own, independent
pagination sequence, run one after the other.
"""

import logging
from typing import Any, Iterable, List, Optional, Sequence, Union

from ..core.client import BirdWeatherClient, require_client
from ..core.errors import InvalidArgumentError
from ..core.flatten import ENVIRONMENT_COLUMNS, LIGHT_COLUMNS, Column, column_names, flatten_nodes
from ..core.paginator import ProgressCallback, paginate_query
from ..core.query_builder import FilterSet, QueryDocument, Variable
from ..core.results import FetchResult, combine_status
from ..core.validation import DateLike, check_limit, id_list, period
from .common import PERIOD, extractor

logger = logging.getLogger(__name__)

STATION_ID = Variable("id", "ID!")


def _history_document(field_name: str, fields: Sequence[str]) -> QueryDocument:
    node_fields = "\n".join(f"    {f}" for f in fields)
    return QueryDocument(
        operation="station",
        field_name=field_name,
        filters=FilterSet([PERIOD]),
        parents=[("station", ["id"]), ("sensors", [])],
        required=[STATION_ID],
        selection=(
            "pageInfo { hasNextPage endCursor }\n"
            "edges {\n"
            "  node {\n"
            f"{node_fields}\n"
            "  }\n"
            "  cursor\n"
            "}"
        ),
    )


ENVIRONMENT_HISTORY = _history_document("environmentHistory", [
    "timestamp", "temperature", "humidity", "barometricPressure",
    "aqi", "eco2", "voc", "soundPressureLevel",
])

LIGHT_HISTORY = _history_document("lightHistory", [
    "timestamp", "clear", "nir", "f1", "f2", "f3", "f4", "f5", "f6", "f7", "f8",
])


def _station_history(client: BirdWeatherClient, document: QueryDocument, columns: Sequence[Column],
                     station_id: Union[str, int, Iterable[Any], None], from_: Optional[DateLike],
                     to: Optional[DateLike], limit: Optional[int], on_page: Optional[ProgressCallback],
                     label: str, func_name: str) -> FetchResult:
    require_client(client)
    station_ids = id_list(station_id)
    if not station_ids:
        raise InvalidArgumentError(f"station_id is required for {func_name}().")

    duration = period(from_, to)
    limit = check_limit(limit)
    bound = document.filters.bind({"period": duration})
    all_columns = column_names(columns, {"station_id": None})
    path = f"station.sensors.{document.field_name}"

    results: List[FetchResult] = []
    for i, sid in enumerate(station_ids, start=1):
        if len(station_ids) > 1:
            logger.info(f"Fetching {label} for station {sid} ({i}/{len(station_ids)})...")

        result = paginate_query(
            client, document, bound,
            extract=extractor(path),
            flatten=lambda nodes, sid=sid: flatten_nodes(nodes, columns, {"station_id": sid}),
            limit=limit,
            on_page=on_page,
            label=label,
            columns=all_columns,
            required={"id": sid},
        ).run()

        if result.is_empty and result.ok:
            message = f"No {label} found for station {sid}"
            logger.info(message)
            result.messages = [message]
        results.append(result)

    if len(results) == 1:
        return results[0]

    combined = FetchResult(columns=all_columns)
    for result in results:
        combined.extend(result)
    combined.status = combine_status(results)
    return combined


def get_environment_data(client: BirdWeatherClient,
                         station_id: Union[str, int, Iterable[Any], None] = None,
                         from_: Optional[DateLike] = None,
                         to: Optional[DateLike] = None,
                         limit: Optional[int] = None,
                         on_page: Optional[ProgressCallback] = None) -> FetchResult:
    """Environmental readings from a PUC station.

    Temperature, humidity, barometric pressure, air quality, eCO2, VOC and
    sound pressure level.

    Args:
        client: Connected client.
        station_id: Station id (required), or a list of ids.
        from_: Period start; requires ``to``.
        to: Period end; requires ``from_``.
        limit: Maximum readings per station (None for all).
        on_page: Progress callback.

    Returns:
        Rows with station_id, timestamp, temperature, humidity,
        barometric_pressure, aqi, eco2, voc, sound_pressure_level.
    """
    return _station_history(client, ENVIRONMENT_HISTORY, ENVIRONMENT_COLUMNS, station_id,
                            from_, to, limit, on_page, "environmental readings", "get_environment_data")


def get_light_data(client: BirdWeatherClient,
                   station_id: Union[str, int, Iterable[Any], None] = None,
                   from_: Optional[DateLike] = None,
                   to: Optional[DateLike] = None,
                   limit: Optional[int] = None,
                   on_page: Optional[ProgressCallback] = None) -> FetchResult:
    """Spectral light readings from a PUC station: channels f1-f8, clear and NIR.

    Returns:
        Rows with station_id, timestamp, clear, nir, f1 ... f8.
    """
    return _station_history(client, LIGHT_HISTORY, LIGHT_COLUMNS, station_id,
                            from_, to, limit, on_page, "light readings", "get_light_data")
