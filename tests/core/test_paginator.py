"""Tests for the cursor paginator.

Tests cover:
- Multi-page round trips and exact page sizes requested
- limit as a hard ceiling, including limit=0
- Partial success when a later page fails
- Stop conditions: empty pages, missing or repeated cursors
- Progress callbacks and lazy iteration
- paginate_query / fetch_single wiring against a client
"""

import logging
from unittest.mock import MagicMock, call

import pytest

from birdweather_client.core.errors import InvalidArgumentError, TransportError
from birdweather_client.core.flatten import Column, flatten_nodes
from birdweather_client.core.paginator import Paginator, fetch_single, paginate_query
from birdweather_client.core.query_builder import FilterSet, QueryDocument, Variable
from birdweather_client.core.results import FetchStatus

ID_COLUMNS = (Column("id", "id"),)


def nodes(start, count):
    return [{"id": str(i)} for i in range(start, start + count)]


def page(items, has_next=False, cursor=None, total=None):
    connection = {"nodes": items, "pageInfo": {"hasNextPage": has_next, "endCursor": cursor}}
    if total is not None:
        connection["totalCount"] = total
    return {"data": {"items": connection}}


def make_paginator(initial, following=None, **kwargs):
    return Paginator(
        initial_request=initial,
        next_request=following or MagicMock(),
        flatten=lambda ns: flatten_nodes(ns, ID_COLUMNS),
        extract=lambda data: data.get("items"),
        label="items",
        columns=["id"],
        **kwargs,
    )


def endless_server(first, after=None):
    """A server with unlimited rows that returns exactly what was asked for."""
    offset = int(after) if after else 0
    return page(nodes(offset, first), has_next=True, cursor=str(offset + first))


# =============================================================================
# ROUND TRIPS
# =============================================================================

class TestRoundTrip:
    """Tests for complete multi-page sequences."""

    def test_three_pages_537_rows(self):
        """250 + 250 + 37 rows come back as one table over three requests."""
        initial = MagicMock(return_value=page(nodes(0, 250), True, "c1", total=537))
        following = MagicMock(side_effect=[
            page(nodes(250, 250), True, "c2"),
            page(nodes(500, 37), False, None),
        ])

        result = make_paginator(initial, following).run()

        assert len(result) == 537
        assert result.pages_fetched == 3
        assert result.requests_made == 3
        assert result.status is FetchStatus.SUCCESS
        assert result.failed_page is None
        assert result.column("id")[0] == "0"
        assert result.column("id")[-1] == "536"
        initial.assert_called_once_with(250)
        assert following.call_args_list == [call(250, "c1"), call(250, "c2")]

    def test_single_page_no_more(self):
        initial = MagicMock(return_value=page(nodes(0, 40), False, "c1"))
        following = MagicMock()

        result = make_paginator(initial, following).run()

        assert len(result) == 40
        assert result.requests_made == 1
        following.assert_not_called()

    def test_total_count_reported_on_first_page(self):
        initial = MagicMock(return_value=page(nodes(0, 3), False, None, total=3))
        pager = make_paginator(initial)
        pager.run()
        assert pager.total_count == 3

    def test_edges_shape(self):
        response = {"data": {"items": {
            "edges": [{"node": {"id": "a"}, "cursor": "x"}, {"node": {"id": "b"}, "cursor": "y"}],
            "pageInfo": {"hasNextPage": False, "endCursor": "y"},
        }}}
        result = make_paginator(MagicMock(return_value=response)).run()
        assert result.column("id") == ["a", "b"]

    def test_custom_page_size(self):
        initial = MagicMock(return_value=page(nodes(0, 100), False))
        make_paginator(initial, page_size=100).run()
        initial.assert_called_once_with(100)


# =============================================================================
# LIMIT HANDLING
# =============================================================================

class TestLimit:
    """Tests for limit as a hard ceiling."""

    def test_limit_exact(self):
        """limit=600 asks for 250, 250, 100 and returns exactly 600 rows."""
        initial = MagicMock(side_effect=lambda first: endless_server(first))
        following = MagicMock(side_effect=endless_server)

        result = make_paginator(initial, following, limit=600).run()

        assert len(result) == 600
        assert result.pages_fetched == 3
        initial.assert_called_once_with(250)
        assert [c.args[0] for c in following.call_args_list] == [250, 100]

    def test_limit_smaller_than_page(self):
        initial = MagicMock(side_effect=lambda first: endless_server(first))
        following = MagicMock()

        result = make_paginator(initial, following, limit=5).run()

        assert len(result) == 5
        initial.assert_called_once_with(5)
        following.assert_not_called()

    def test_over_delivery_is_trimmed(self):
        initial = MagicMock(return_value=page(nodes(0, 10), True, "c1"))
        result = make_paginator(initial, limit=5).run()
        assert len(result) == 5
        assert result.column("id") == ["0", "1", "2", "3", "4"]

    def test_limit_zero_sends_nothing(self):
        initial = MagicMock()
        following = MagicMock()

        result = make_paginator(initial, following, limit=0).run()

        assert len(result) == 0
        assert result.requests_made == 0
        assert result.status is FetchStatus.EMPTY
        initial.assert_not_called()
        following.assert_not_called()

    def test_fewer_rows_than_limit(self):
        initial = MagicMock(return_value=page(nodes(0, 40), False))
        result = make_paginator(initial, limit=1000).run()
        assert len(result) == 40
        assert result.status is FetchStatus.SUCCESS

    @pytest.mark.parametrize("limit", [-1, 1.5, "10", True])
    def test_invalid_limit(self, limit):
        with pytest.raises(InvalidArgumentError):
            make_paginator(MagicMock(), limit=limit)

    @pytest.mark.parametrize("page_size", [0, 251, True])
    def test_invalid_page_size(self, page_size):
        with pytest.raises(InvalidArgumentError):
            make_paginator(MagicMock(), page_size=page_size)


# =============================================================================
# FAILURES
# =============================================================================

class TestFailures:
    """Tests for partial success and failure reporting."""

    def test_error_on_page_two_of_three(self):
        """Rows from page 1 survive; the error and failed page are reported."""
        initial = MagicMock(return_value=page(nodes(0, 250), True, "c1"))
        following = MagicMock(side_effect=[
            {"errors": [{"message": "Internal server error"}]},
            page(nodes(500, 37), False),
        ])

        result = make_paginator(initial, following).run()

        assert len(result) == 250
        assert result.status is FetchStatus.PARTIAL
        assert result.failed_page == 2
        assert result.requests_made == 2
        assert result.pages_fetched == 1
        assert result.errors == [{"message": "Internal server error"}]
        assert following.call_count == 1
        assert any("page 2" in m for m in result.messages)

    def test_error_on_first_page(self):
        initial = MagicMock(return_value={"data": None, "errors": [{"message": "bad"}]})

        result = make_paginator(initial).run()

        assert result.is_empty
        assert result.status is FetchStatus.FAILED
        assert result.failed_page == 1
        assert result.requests_made == 1
        assert "API returned errors; no data retrieved." in result.messages

    def test_transport_error_mid_sequence(self):
        initial = MagicMock(return_value=page(nodes(0, 250), True, "c1"))
        following = MagicMock(side_effect=TransportError("Read timed out", status_code=None))

        result = make_paginator(initial, following).run()

        assert len(result) == 250
        assert result.status is FetchStatus.PARTIAL
        assert result.errors == ["Read timed out"]

    def test_errors_are_logged(self, caplog):
        initial = MagicMock(return_value=page(nodes(0, 1), True, "c1"))
        following = MagicMock(return_value={"errors": [{"message": "boom"}]})

        with caplog.at_level(logging.ERROR):
            make_paginator(initial, following).run()

        assert "API error on page 2" in caplog.text


# =============================================================================
# STOP CONDITIONS
# =============================================================================

class TestStopConditions:
    """Tests for when a sequence ends without error."""

    def test_empty_first_page(self):
        result = make_paginator(MagicMock(return_value=page([], False))).run()
        assert result.status is FetchStatus.EMPTY
        assert result.columns == ["id"]
        assert "No items found for the specified filters." in result.messages

    def test_empty_later_page(self):
        initial = MagicMock(return_value=page(nodes(0, 250), True, "c1"))
        following = MagicMock(return_value=page([], True, "c2"))

        result = make_paginator(initial, following).run()

        assert len(result) == 250
        assert result.status is FetchStatus.SUCCESS
        assert result.requests_made == 2
        assert result.pages_fetched == 1

    def test_null_connection(self):
        result = make_paginator(MagicMock(return_value={"data": {"items": None}})).run()
        assert result.status is FetchStatus.EMPTY

    def test_missing_cursor_stops(self):
        initial = MagicMock(return_value=page(nodes(0, 10), True, None))
        following = MagicMock()

        result = make_paginator(initial, following).run()

        assert len(result) == 10
        following.assert_not_called()

    def test_repeated_cursor_stops(self):
        initial = MagicMock(return_value=page(nodes(0, 10), True, "c1"))
        following = MagicMock(return_value=page(nodes(10, 10), True, "c1"))

        result = make_paginator(initial, following).run()

        assert len(result) == 20
        assert following.call_count == 1


# =============================================================================
# PROGRESS AND LAZINESS
# =============================================================================

class TestProgress:
    """Tests for on_page callbacks and lazy iteration."""

    def test_on_page_called_per_page(self):
        initial = MagicMock(return_value=page(nodes(0, 250), True, "c1", total=537))
        following = MagicMock(side_effect=[
            page(nodes(250, 250), True, "c2"),
            page(nodes(500, 37), False, None),
        ])
        seen = []

        make_paginator(initial, following, on_page=seen.append).run()

        assert [p.page for p in seen] == [1, 2, 3]
        assert [p.rows_so_far for p in seen] == [250, 500, 537]
        assert all(p.total_count == 537 for p in seen)
        assert seen[-1].has_next_page is False

    def test_page_progress_logged(self, caplog):
        initial = MagicMock(return_value=page(nodes(0, 3), False, total=3))
        with caplog.at_level(logging.INFO):
            make_paginator(initial).run()
        assert "Total items matching filters: 3" in caplog.text
        assert "Fetched page 1 - 3 items" in caplog.text

    def test_trimmed_page_logs_kept_rows(self, caplog):
        initial = MagicMock(return_value=page(nodes(0, 10), True, "c1"))
        with caplog.at_level(logging.INFO):
            result = make_paginator(initial, limit=5).run()
        assert len(result) == 5
        assert "Fetched page 1 - 5 items" in caplog.text
        assert "- 10 items" not in caplog.text

    def test_large_result_note(self, caplog):
        initial = MagicMock(return_value=page(nodes(0, 3), False, total=25000))
        with caplog.at_level(logging.INFO):
            make_paginator(initial).run()
        assert "This may take a while" in caplog.text

    def test_iter_rows_is_lazy(self):
        initial = MagicMock(return_value=page(nodes(0, 2), True, "c1"))
        following = MagicMock(return_value=page(nodes(2, 2), False))

        rows = make_paginator(initial, following).iter_rows()
        assert next(rows) == {"id": "0"}
        following.assert_not_called()

        assert [r["id"] for r in rows] == ["1", "2", "3"]
        following.assert_called_once()

    def test_single_use(self):
        pager = make_paginator(MagicMock(return_value=page(nodes(0, 1), False)))
        pager.run()
        with pytest.raises(RuntimeError):
            pager.run()


# =============================================================================
# CLIENT WIRING
# =============================================================================

DOC = QueryDocument(
    operation="items",
    field_name="items",
    filters=FilterSet([Variable("query", "String")]),
    selection="nodes { id }\npageInfo { hasNextPage endCursor }",
)


class TestPaginateQuery:
    """Tests for paginate_query and fetch_single."""

    def test_initial_and_follow_up_documents(self, mock_client):
        mock_client.execute.side_effect = [
            page(nodes(0, 250), True, "c1"),
            page(nodes(250, 1), False),
        ]
        bound = DOC.filters.bind({"query": "robin"})

        result = paginate_query(
            mock_client, DOC, bound,
            extract=lambda data: data.get("items"),
            flatten=lambda ns: flatten_nodes(ns, ID_COLUMNS),
        ).run()

        assert len(result) == 251
        (q1, v1), (q2, v2) = [c.args for c in mock_client.execute.call_args_list]
        assert "$after" not in q1
        assert "$after: String" in q2
        assert v1 == {"first": 250, "query": "robin"}
        assert v2 == {"first": 250, "query": "robin", "after": "c1"}

    def test_client_page_size_used(self, mock_client):
        mock_client.config.page_size = 50
        mock_client.execute.return_value = page([], False)

        paginate_query(mock_client, DOC, DOC.filters.bind({}),
                       extract=lambda data: data.get("items"),
                       flatten=lambda ns: flatten_nodes(ns, ID_COLUMNS)).run()

        assert mock_client.execute.call_args.args[1]["first"] == 50

    def test_fetch_single_success(self, mock_client):
        doc = QueryDocument("counts", "counts", "detections", paginated=False)
        mock_client.execute.return_value = {"data": {"counts": {"detections": 5}}}

        payload, errors = fetch_single(mock_client, doc, doc.filters.bind({}), lambda d: d.get("counts"))

        assert payload == {"detections": 5}
        assert errors == []
        assert mock_client.execute.call_args.args[1] == {}

    def test_fetch_single_errors(self, mock_client):
        doc = QueryDocument("counts", "counts", "detections", paginated=False)
        mock_client.execute.return_value = {"errors": [{"message": "nope"}]}

        payload, errors = fetch_single(mock_client, doc, doc.filters.bind({}), lambda d: d.get("counts"))

        assert payload is None
        assert errors == [{"message": "nope"}]

    def test_fetch_single_transport_error(self, mock_client):
        doc = QueryDocument("counts", "counts", "detections", paginated=False)
        mock_client.execute.side_effect = TransportError("HTTP 502 from server", status_code=502)

        payload, errors = fetch_single(mock_client, doc, doc.filters.bind({}), lambda d: d.get("counts"))

        assert payload is None
        assert errors == ["HTTP 502 from server"]
