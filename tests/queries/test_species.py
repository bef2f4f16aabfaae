"""Tests for species search and metadata lookup."""

import pytest

from birdweather_client.core.errors import InvalidArgumentError
from birdweather_client.core.results import FetchStatus
from birdweather_client.queries.species import (
    clean_species_name,
    find_species,
    get_species_info,
    resolve_species_names,
)


@pytest.fixture
def wood_thrush():
    return {"id": "305", "commonName": "Wood Thrush", "scientificName": "Hylocichla mustelina"}


class TestFindSpecies:
    """Tests for find_species."""

    def test_search(self, mock_client, make_page, wood_thrush):
        mock_client.execute.return_value = make_page("searchSpecies", [wood_thrush], total=1)

        result = find_species(mock_client, "thrush")

        assert mock_client.execute.call_args.args[1] == {"first": 20, "query": "thrush"}
        assert result.rows == [
            {"species_id": "305", "common_name": "Wood Thrush", "scientific_name": "Hylocichla mustelina"}
        ]

    def test_no_match_hint(self, mock_client, make_page):
        mock_client.execute.return_value = make_page("searchSpecies", [])

        result = find_species(mock_client, "chickadee")

        assert result.status is FetchStatus.EMPTY
        assert any("wildcard (e.g., 'chi*')" in m for m in result.messages)

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_empty_query(self, mock_client, query):
        with pytest.raises(InvalidArgumentError):
            find_species(mock_client, query)


class TestSpeciesInfo:
    """Tests for get_species_info."""

    def test_lookup(self, mock_client, make_page, wood_thrush):
        node = dict(wood_thrush, color="#aa5500", alpha="WOTH", alpha6="HYLMUS", ebirdCode="woothr",
                    imageUrl="https://img/1.jpg", thumbnailUrl="https://img/t1.jpg", wikipediaSummary="A thrush.")
        mock_client.execute.return_value = make_page("allSpecies", [node])

        result = get_species_info(mock_client, [305, "306"])

        query, variables = mock_client.execute.call_args.args
        assert "$ids: [ID!]!" in query
        assert variables == {"first": 250, "ids": ["305", "306"]}
        assert result.rows[0]["ebird_code"] == "woothr"
        assert result.rows[0]["wikipedia_summary"] == "A thrush."

    def test_no_ids(self, mock_client):
        result = get_species_info(mock_client, [])

        mock_client.execute.assert_not_called()
        assert result.is_empty
        assert result.messages == ["No species IDs provided."]
        assert "image_url" in result.columns


class TestResolveSpeciesNames:
    """Tests for turning names into ids."""

    def test_clean_name(self):
        assert clean_species_name("Wood Thrush (Hylocichla mustelina)") == "Wood Thrush"
        assert clean_species_name("  Wood Thrush ") == "Wood Thrush"

    def test_single_name_string(self, mock_client, make_page, wood_thrush):
        mock_client.execute.return_value = make_page("searchSpecies", [wood_thrush])

        resolution = resolve_species_names(mock_client, "Wood Thrush")

        assert resolution.ids == ["305"]
        assert resolution.unmatched == []
        assert resolution.ambiguous == {}

    def test_failed_lookup_not_unmatched(self, mock_client, make_page, wood_thrush):
        mock_client.execute.side_effect = [
            {"data": None, "errors": [{"message": "Internal server error"}]},
            make_page("searchSpecies", [wood_thrush]),
        ]

        resolution = resolve_species_names(mock_client, ["Hermit Thrush", "Wood Thrush"])

        assert resolution.ids == ["305"]
        assert resolution.failed == ["Hermit Thrush"]
        assert resolution.unmatched == []
        assert resolution.errors == [{"message": "Internal server error"}]
        assert "Species lookup failed for: Hermit Thrush" in resolution.messages
