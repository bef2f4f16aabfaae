"""Species search and lookup.

``find_species`` is also what turns human-readable names into species ids
for the other query functions; a name that matches several species is
reported back rather than guessed.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from ..core.client import BirdWeatherClient, require_client
from ..core.errors import InvalidArgumentError
from ..core.flatten import SPECIES_INFO_COLUMNS, SPECIES_SEARCH_COLUMNS, column_names, flatten_nodes
from ..core.paginator import paginate_query
from ..core.query_builder import FilterSet, QueryDocument, Variable
from ..core.results import FetchResult, FetchStatus, empty_result
from ..core.validation import check_limit, id_list
from .common import extractor

logger = logging.getLogger(__name__)

SEARCH_SPECIES = QueryDocument(
    operation="searchSpecies",
    field_name="searchSpecies",
    filters=FilterSet([Variable("query", "String")]),
    selection="""
        nodes {
          id
          commonName
          scientificName
        }
        pageInfo { hasNextPage endCursor }
        totalCount
    """,
)

ALL_SPECIES = QueryDocument(
    operation="allSpecies",
    field_name="allSpecies",
    filters=FilterSet([Variable("ids", "[ID!]!")]),
    selection="""
        nodes {
          id
          commonName
          scientificName
          color
          alpha
          alpha6
          ebirdCode
          imageUrl
          thumbnailUrl
          wikipediaSummary
        }
        pageInfo { hasNextPage endCursor }
    """,
)

# "Wood Thrush (Hylocichla mustelina)" as copied from a results table
_PARENTHESIZED = re.compile(r"\(.*\)")


def find_species(client: BirdWeatherClient, query: str, limit: Optional[int] = 20) -> FetchResult:
    """Search species by common or scientific name.

    Args:
        client: Connected client.
        query: Common name, scientific name, or partial match
            (e.g. "chickadee", "Poecile", "Black-capped").
        limit: Maximum number of matches to return.

    Returns:
        Rows with species_id, common_name, scientific_name.
    """
    require_client(client)
    if not isinstance(query, str) or not query.strip():
        raise InvalidArgumentError("'query' must be a non-empty string.")
    limit = check_limit(limit)

    bound = SEARCH_SPECIES.filters.bind({"query": query})
    result = paginate_query(
        client, SEARCH_SPECIES, bound,
        extract=extractor("searchSpecies"),
        flatten=lambda nodes: flatten_nodes(nodes, SPECIES_SEARCH_COLUMNS),
        limit=limit,
        label="species",
        columns=column_names(SPECIES_SEARCH_COLUMNS),
    ).run()

    if result.is_empty and result.ok and limit != 0:
        hint = query[:round(len(query) * 0.3)]
        result.note(f"No species found matching: {query}. Consider using a wildcard "
                    f"(e.g., '{hint}*') for a partial search. Including hyphens in name is helpful.")
    return result


def get_species_info(client: BirdWeatherClient, ids: Union[str, int, Iterable[Any], None]) -> FetchResult:
    """Look up descriptive metadata for a list of species ids.

    Useful for joining readable names onto daily counts or detections.
    """
    require_client(client)
    ids = id_list(ids)
    columns = column_names(SPECIES_INFO_COLUMNS)

    if not ids:
        logger.info("No species IDs provided.")
        return empty_result(columns, "No species IDs provided.")

    bound = ALL_SPECIES.filters.bind({"ids": ids})
    result = paginate_query(
        client, ALL_SPECIES, bound,
        extract=extractor("allSpecies"),
        flatten=lambda nodes: flatten_nodes(nodes, SPECIES_INFO_COLUMNS),
        label="species",
        columns=columns,
    ).run()
    return result


@dataclass
class SpeciesResolution:
    """Outcome of turning species names into ids."""
    ids: List[str] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)
    ambiguous: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)
    errors: List[Any] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)


def clean_species_name(name: str) -> str:
    return _PARENTHESIZED.sub("", name).strip()


def resolve_species_names(client: BirdWeatherClient, names: Union[str, Iterable[str]]) -> SpeciesResolution:
    """Resolve each name to exactly one species id.

    Names with no match, or with more than one, are skipped and reported.
    A lookup that fails on the server side is recorded in ``errors``.
    """
    if isinstance(names, str):
        names = [names]

    resolution = SpeciesResolution()
    for raw_name in names:
        name = clean_species_name(raw_name)
        found = find_species(client, name, limit=10)

        if found.status is FetchStatus.FAILED:
            message = f"Species lookup failed for: {name}"
            logger.error(message)
            resolution.failed.append(name)
            resolution.errors.extend(found.errors)
            resolution.messages.append(message)
            continue

        if len(found) == 0:
            message = f"No species found for: {name} - skipping."
            logger.info(message)
            resolution.unmatched.append(name)
            resolution.messages.append(message)
            continue

        if len(found) > 1:
            match_list = "\n".join(f"  {r['common_name']} ({r['scientific_name']})" for r in found)
            message = f"Multiple matches for '{name}':\n{match_list}\nPlease rerun with a more specific name."
            logger.warning(message)
            resolution.ambiguous[name] = list(found.rows)
            resolution.messages.append(message)
            continue

        resolution.ids.append(str(found.rows[0]["species_id"]))

    return resolution
