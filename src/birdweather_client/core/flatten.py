"""Projection of nested GraphQL nodes into flat rows.

Each entity kind has a fixed column table mapping an output column to a
dotted path in the node. Missing nested objects resolve to ``None`` for every
column projected from them; nothing here raises on absent optional data.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

MISSING = None


def resolve(node: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts, returning None when it breaks."""
    current = node
    for key in path.split("."):
        if not isinstance(current, Mapping):
            return MISSING
        current = current.get(key)
        if current is None:
            return MISSING
    return current


def blank_to_none(value: Any) -> Any:
    """The server sometimes sends "" for an unset location; treat it as missing."""
    if isinstance(value, str) and value.strip() == "":
        return MISSING
    return value


def strip_text(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


@dataclass(frozen=True)
class Column:
    """One output column: its name, source path, and optional value transform."""
    name: str
    path: str
    transform: Optional[Callable[[Any], Any]] = None

    def extract(self, node: Any) -> Any:
        value = resolve(node, self.path)
        if self.transform is not None:
            value = self.transform(value)
        return value


def column_names(columns: Sequence[Column], extra: Optional[Mapping[str, Any]] = None) -> List[str]:
    return list(extra or {}) + [c.name for c in columns]


def flatten_node(node: Any, columns: Sequence[Column], extra: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    row: Dict[str, Any] = dict(extra or {})
    for col in columns:
        row[col.name] = col.extract(node)
    return row


def flatten_nodes(nodes: Optional[Iterable[Any]], columns: Sequence[Column],
                  extra: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
    """Flatten one page of nodes. Pure: the input is never modified."""
    if not nodes:
        return []
    return [flatten_node(node, columns, extra) for node in nodes]


def unwrap_edges(connection: Optional[Mapping[str, Any]]) -> Optional[List[Any]]:
    """Return a connection's rows from either ``nodes`` or ``edges[].node``."""
    if not isinstance(connection, Mapping):
        return None
    nodes = connection.get("nodes")
    if nodes is not None:
        return list(nodes)
    edges = connection.get("edges")
    if edges is None:
        return None
    return [edge.get("node") if isinstance(edge, Mapping) else None for edge in edges]


# --- Projection Tables ---

DETECTION_COLUMNS = (
    Column("id", "id"),
    Column("timestamp", "timestamp"),
    Column("confidence", "confidence"),
    Column("score", "score"),
    Column("det_lat", "coords.lat"),
    Column("det_lon", "coords.lon"),
    Column("species_id", "species.id"),
    Column("common_name", "species.commonName"),
    Column("scientific_name", "species.scientificName"),
    Column("station_id", "station.id"),
    Column("station_name", "station.name"),
    Column("station_type", "station.type"),
    Column("station_timezone", "station.timezone"),
    Column("station_country", "station.country"),
    Column("station_continent", "station.continent"),
    Column("station_state", "station.state"),
    Column("station_location", "station.location", blank_to_none),
    Column("station_lat", "station.coords.lat"),
    Column("station_lon", "station.coords.lon"),
)

STATION_COLUMNS = (
    Column("station_id", "id"),
    Column("station_name", "name", strip_text),
    Column("station_type", "type"),
    Column("station_timezone", "timezone"),
    Column("station_country", "country"),
    Column("station_continent", "continent"),
    Column("station_state", "state"),
    Column("station_location", "location", blank_to_none),
    Column("station_lat", "coords.lat"),
    Column("station_lon", "coords.lon"),
    Column("location_privacy", "locationPrivacy"),
)

SPECIES_SEARCH_COLUMNS = (
    Column("species_id", "id"),
    Column("common_name", "commonName"),
    Column("scientific_name", "scientificName"),
)

SPECIES_INFO_COLUMNS = (
    Column("species_id", "id"),
    Column("common_name", "commonName"),
    Column("scientific_name", "scientificName"),
    Column("color", "color"),
    Column("alpha", "alpha"),
    Column("alpha6", "alpha6"),
    Column("ebird_code", "ebirdCode"),
    Column("image_url", "imageUrl"),
    Column("thumbnail_url", "thumbnailUrl"),
    Column("wikipedia_summary", "wikipediaSummary"),
)

ENVIRONMENT_COLUMNS = (
    Column("timestamp", "timestamp"),
    Column("temperature", "temperature"),
    Column("humidity", "humidity"),
    Column("barometric_pressure", "barometricPressure"),
    Column("aqi", "aqi"),
    Column("eco2", "eco2"),
    Column("voc", "voc"),
    Column("sound_pressure_level", "soundPressureLevel"),
)

LIGHT_COLUMNS = (
    Column("timestamp", "timestamp"),
    Column("clear", "clear"),
    Column("nir", "nir"),
) + tuple(Column(f"f{i}", f"f{i}") for i in range(1, 9))

COUNTS_COLUMNS = (
    Column("detections", "detections"),
    Column("species", "species"),
    Column("stations", "stations"),
)

TOP_SPECIES_COLUMNS = (
    Column("species_id", "speciesId"),
    Column("common_name", "species.commonName"),
    Column("scientific_name", "species.scientificName"),
    Column("count", "count"),
    Column("almost_certain", "breakdown.almostCertain"),
    Column("very_likely", "breakdown.veryLikely"),
    Column("unlikely", "breakdown.unlikely"),
    Column("uncertain", "breakdown.uncertain"),
)

DAILY_COUNT_COLUMNS = (
    Column("date", "date"),
    Column("day_of_year", "dayOfYear"),
    Column("daily_total", "total"),
)
