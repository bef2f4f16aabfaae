"""Tests for get_stations."""

import pytest

from birdweather_client.core.errors import InvalidArgumentError
from birdweather_client.core.results import FetchStatus
from birdweather_client.queries.stations import get_stations


class TestGetStations:
    """Tests for station search and flattening."""

    def test_query_filter(self, mock_client, make_page, sample_station):
        mock_client.execute.return_value = make_page("stations", [sample_station], total=1)

        result = get_stations(mock_client, query="backyard")

        query, variables = mock_client.execute.call_args.args
        assert variables == {"first": 250, "query": "backyard"}
        assert "$query: String" in query
        assert "locationPrivacy" in query
        assert result.rows[0]["station_name"] == "Backyard PUC"
        assert result.rows[0]["station_location"] == "Chicago, Illinois"

    def test_blank_location_normalised(self, mock_client, make_page, sample_station):
        mock_client.execute.return_value = make_page("stations", [
            dict(sample_station, id="1", location=""),
            dict(sample_station, id="2", location=None),
        ])

        result = get_stations(mock_client)

        assert result.column("station_location") == [None, None]

    def test_column_order(self, mock_client, make_page, sample_station):
        mock_client.execute.return_value = make_page("stations", [sample_station])

        result = get_stations(mock_client)

        assert result.columns == [
            "station_id", "station_name", "station_type", "station_timezone",
            "station_country", "station_continent", "station_state",
            "station_location", "station_lat", "station_lon", "location_privacy",
        ]
        assert list(result.rows[0]) == result.columns

    def test_limit_across_pages(self, mock_client, make_page, sample_station):
        mock_client.execute.side_effect = [
            make_page("stations", [sample_station] * 250, has_next=True, end_cursor="c1"),
            make_page("stations", [sample_station] * 50, has_next=True, end_cursor="c2"),
        ]

        result = get_stations(mock_client, limit=300)

        assert len(result) == 300
        assert mock_client.execute.call_count == 2
        assert mock_client.execute.call_args.args[1] == {"first": 50, "after": "c1"}

    def test_bounding_box_and_period(self, mock_client, make_page):
        mock_client.execute.return_value = make_page("stations", [])

        result = get_stations(
            mock_client,
            from_="2025-05-01T00:00:00.000Z", to="2025-05-02T00:00:00.000Z",
            ne=(42.0, -85.0), sw=(36.0, -96.0),
        )

        variables = mock_client.execute.call_args.args[1]
        assert variables["ne"] == {"lat": 42.0, "lon": -85.0}
        assert variables["period"]["to"] == "2025-05-02T00:00:00.000Z"
        assert result.status is FetchStatus.EMPTY

    def test_half_box_rejected(self, mock_client):
        with pytest.raises(InvalidArgumentError):
            get_stations(mock_client, ne={"lat": 42.0, "lon": -85.0})
        mock_client.execute.assert_not_called()

    def test_limit_zero(self, mock_client):
        result = get_stations(mock_client, limit=0)
        mock_client.execute.assert_not_called()
        assert result.status is FetchStatus.EMPTY
