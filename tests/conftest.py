"""Shared fixtures for the BirdWeather client tests."""

import os
import sys
from unittest.mock import MagicMock

import pytest

# Add src to sys.path to ensure we can import the package if it's not installed
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

from birdweather_client.core.client import BirdWeatherClient


@pytest.fixture
def mock_client():
    """Create a BirdWeatherClient with mocked query execution."""
    client = BirdWeatherClient()
    client.execute = MagicMock()
    return client


@pytest.fixture
def make_page():
    """Build a GraphQL response holding one page of a connection."""
    def _make(field, nodes, has_next=False, end_cursor=None, total=None, edges=False):
        connection = {"pageInfo": {"hasNextPage": has_next, "endCursor": end_cursor}}
        if edges:
            connection["edges"] = [{"node": n, "cursor": f"cur-{i}"} for i, n in enumerate(nodes)]
        else:
            connection["nodes"] = nodes
        if total is not None:
            connection["totalCount"] = total
        return {"data": {field: connection}}
    return _make


@pytest.fixture
def sample_detection():
    """Sample detection node as returned by the detections connection."""
    return {
        "id": "det123",
        "timestamp": "2025-05-01T05:42:10.000Z",
        "confidence": 0.92,
        "score": 8.1,
        "coords": {"lat": 41.5, "lon": -87.6},
        "species": {"id": "305", "commonName": "Wood Thrush", "scientificName": "Hylocichla mustelina"},
        "station": {
            "id": "1733",
            "name": "Backyard",
            "type": "puc",
            "timezone": "America/Chicago",
            "country": "United States",
            "continent": "North America",
            "state": "Illinois",
            "location": "",
            "coords": {"lat": 41.5, "lon": -87.6},
        },
    }


@pytest.fixture
def sample_station():
    """Sample station node."""
    return {
        "id": "1733",
        "name": "  Backyard PUC  ",
        "type": "puc",
        "timezone": "America/Chicago",
        "country": "United States",
        "continent": "North America",
        "state": "Illinois",
        "location": "Chicago, Illinois",
        "locationPrivacy": False,
        "coords": {"lat": 41.5, "lon": -87.6},
    }
