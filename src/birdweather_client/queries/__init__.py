"""Query functions for the BirdWeather GraphQL API.

Every function takes a connected client as its first argument and returns
a :class:`~birdweather_client.core.results.FetchResult`.
"""

from .counts import get_counts, get_daily_detection_counts, get_top_species
from .detections import get_detections
from .sensors import get_environment_data, get_light_data
from .species import SpeciesResolution, find_species, get_species_info, resolve_species_names
from .stations import get_stations
from .time_of_day import get_tod_counts

__all__ = [
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
    "resolve_species_names",
    "SpeciesResolution",
]
