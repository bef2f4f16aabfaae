"""Filter variables shared across BirdWeather endpoints."""

from functools import partial
from typing import Any, Mapping, Optional

from ..core.flatten import resolve
from ..core.query_builder import Variable

PERIOD = Variable("period", "InputDuration")
STATION_IDS = Variable("stationIds", "[ID!]")
STATION_TYPES = Variable("stationTypes", "[String!]")
SPECIES_ID = Variable("speciesId", "ID")
SPECIES_IDS = Variable("speciesIds", "[ID!]")
CONTINENTS = Variable("continents", "[String!]")
COUNTRIES = Variable("countries", "[String!]")
CONFIDENCE_GTE = Variable("confidenceGte", "Float")
NE = Variable("ne", "InputLocation")
SW = Variable("sw", "InputLocation")


def _at(path: str, data: Mapping[str, Any]) -> Optional[Any]:
    return resolve(data, path)


def extractor(path: str):
    """Build an ``extract`` callable that picks ``path`` out of the response data."""
    return partial(_at, path)
