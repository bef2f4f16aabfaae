"""Cursor pagination over GraphQL connections.

A :class:`Paginator` walks one connection (``pageInfo.hasNextPage`` /
``pageInfo.endCursor``) with repeated blocking requests, flattening each page
and stopping when the server runs out of pages, the caller's ``limit`` is
reached, an empty page arrives, or a request fails.

Failures are never retried and never raised: the sequence ends and whatever
was retained so far is returned, together with the error and the number of
the page that failed.

Example::

    >>> pager = Paginator(
    ...     initial_request=lambda first: client.execute(q1, {"first": first}),
    ...     next_request=lambda first, after: client.execute(q2, {"first": first, "after": after}),
    ...     flatten=lambda nodes: flatten_nodes(nodes, STATION_COLUMNS),
    ...     extract=lambda data: data.get("stations"),
    ...     limit=600,
    ... )
    >>> result = pager.run()
    >>> result.pages_fetched
    3
"""

import logging
from typing import Any, Callable, Dict, Generator, List, Mapping, Optional, Sequence, Tuple

from ..config.settings import MAX_PAGE_SIZE
from .errors import InvalidArgumentError, TransportError
from .flatten import unwrap_edges
from .query_builder import BoundFilters, QueryDocument
from .results import FetchResult, FetchStatus, Page, PageProgress
from .validation import check_limit

logger = logging.getLogger(__name__)

# Above this many matches with no limit, warn that the download will be long
LARGE_RESULT_THRESHOLD = 10000

InitialRequest = Callable[[int], Dict[str, Any]]
NextRequest = Callable[[int, str], Dict[str, Any]]
Flatten = Callable[[List[Any]], List[Dict[str, Any]]]
Extract = Callable[[Mapping[str, Any]], Optional[Mapping[str, Any]]]
ProgressCallback = Callable[[PageProgress], None]


class Paginator:
    """Fetches all (or up to ``limit``) rows of one paginated collection.

    Attributes:
        pages_fetched: Pages retained so far.
        requests_made: Requests sent so far, including a failed one.
        rows_seen: Rows retained so far.
        errors: Error payloads from the request that ended the sequence.
        failed_page: Number of the page whose request failed.
        total_count: ``totalCount`` reported on the first page, if any.
    """

    def __init__(self, initial_request: InitialRequest, next_request: NextRequest,
                 flatten: Flatten, extract: Extract, page_size: int = MAX_PAGE_SIZE,
                 limit: Optional[int] = None, on_page: Optional[ProgressCallback] = None,
                 label: str = "rows", columns: Optional[Sequence[str]] = None):
        if isinstance(page_size, bool) or not isinstance(page_size, int) or not 1 <= page_size <= MAX_PAGE_SIZE:
            raise InvalidArgumentError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size!r}")

        self.initial_request = initial_request
        self.next_request = next_request
        self.flatten = flatten
        self.extract = extract
        self.page_size = page_size
        self.limit = check_limit(limit)
        self.on_page = on_page
        self.label = label
        self.columns = list(columns or [])

        self.pages_fetched = 0
        self.requests_made = 0
        self.rows_seen = 0
        self.errors: List[Any] = []
        self.failed_page: Optional[int] = None
        self.total_count: Optional[int] = None
        self._started = False

    @property
    def status(self) -> FetchStatus:
        if self.failed_page is not None:
            return FetchStatus.PARTIAL if self.pages_fetched else FetchStatus.FAILED
        return FetchStatus.SUCCESS if self.rows_seen else FetchStatus.EMPTY

    def _limit_reached(self) -> bool:
        return self.limit is not None and self.rows_seen >= self.limit

    def _next_size(self) -> int:
        if self.limit is None:
            return self.page_size
        return min(self.page_size, self.limit - self.rows_seen)

    def _request(self, number: int, first: int, after: Optional[str]) -> Optional[Dict[str, Any]]:
        """Send one request; on failure record it and return None."""
        self.requests_made += 1
        try:
            if number == 1:
                response = self.initial_request(first)
            else:
                response = self.next_request(first, after)
        except TransportError as e:
            logger.error(f"Request for page {number} failed - stopping: {e}")
            self.errors = [str(e)]
            self.failed_page = number
            return None

        if response.get("errors"):
            if number == 1:
                logger.error(f"API returned errors: {response['errors']}")
            else:
                logger.error(f"API error on page {number} - stopping. {response['errors']}")
            self.errors = list(response["errors"])
            self.failed_page = number
            return None

        return response

    def _retain(self, number: int, nodes: List[Any], connection: Mapping[str, Any]) -> Page:
        rows = self.flatten(nodes)
        if self.limit is not None and self.rows_seen + len(rows) > self.limit:
            rows = rows[:self.limit - self.rows_seen]

        page_info = connection.get("pageInfo") or {}
        page = Page(
            number=number,
            rows=rows,
            end_cursor=page_info.get("endCursor"),
            has_next_page=bool(page_info.get("hasNextPage")),
            total_count=connection.get("totalCount"),
        )

        self.pages_fetched += 1
        self.rows_seen += len(rows)

        if number == 1 and page.total_count is not None:
            self.total_count = page.total_count
            logger.info(f"Total {self.label} matching filters: {page.total_count}")
            if page.total_count > LARGE_RESULT_THRESHOLD and self.limit is None:
                logger.info(f"Note: {page.total_count:,} {self.label} found. This may take a while to download. "
                            f"Set limit = 1000 to retrieve a subset instead.")

        logger.info(f"Fetched page {number} - {len(rows)} {self.label}")

        if self.on_page is not None:
            self.on_page(PageProgress(
                page=number,
                rows_on_page=len(rows),
                rows_so_far=self.rows_seen,
                total_count=self.total_count,
                has_next_page=page.has_next_page,
            ))
        return page

    def iter_pages(self) -> Generator[Page, None, None]:
        """Lazily fetch pages. A paginator can only be consumed once."""
        if self._started:
            raise RuntimeError("Paginator has already been consumed")
        self._started = True

        if self.limit == 0:
            logger.info("limit is 0 - no request sent.")
            return

        number = 1
        after: Optional[str] = None
        while True:
            response = self._request(number, self._next_size(), after)
            if response is None:
                return

            connection = self.extract(response.get("data") or {}) or {}
            nodes = unwrap_edges(connection)
            if not nodes:
                if number == 1:
                    logger.info(f"No {self.label} found for the specified filters.")
                else:
                    logger.info(f"No data on page {number} - stopping.")
                return

            page = self._retain(number, nodes, connection)
            yield page

            if not page.has_next_page or self._limit_reached():
                return
            if page.end_cursor is None or page.end_cursor == after:
                logger.warning(f"Server reported more pages but no new cursor after page {number} - stopping.")
                return

            after = page.end_cursor
            number += 1

    def iter_rows(self) -> Generator[Dict[str, Any], None, None]:
        """Lazily yield flattened rows across all pages."""
        for page in self.iter_pages():
            yield from page.rows

    def run(self) -> FetchResult:
        """Fetch everything eagerly into a :class:`FetchResult`."""
        rows: List[Dict[str, Any]] = []
        for page in self.iter_pages():
            rows.extend(page.rows)

        result = FetchResult(
            columns=list(self.columns),
            rows=rows,
            status=self.status,
            pages_fetched=self.pages_fetched,
            requests_made=self.requests_made,
            errors=list(self.errors),
            failed_page=self.failed_page,
        )

        if result.status is FetchStatus.EMPTY:
            result.note(f"No {self.label} found for the specified filters.")
        elif result.status is FetchStatus.FAILED:
            result.note("API returned errors; no data retrieved.")
        elif result.status is FetchStatus.PARTIAL:
            result.note(f"API error on page {self.failed_page}; returning {len(rows)} {self.label} "
                        f"from {self.pages_fetched} earlier page(s).")

        logger.info(f"Done. Returning {len(rows)} {self.label}.")
        return result


def paginate_query(client, document: QueryDocument, bound: BoundFilters, extract: Extract,
                   flatten: Flatten, limit: Optional[int] = None,
                   on_page: Optional[ProgressCallback] = None, label: str = "rows",
                   columns: Optional[Sequence[str]] = None,
                   required: Optional[Mapping[str, Any]] = None) -> Paginator:
    """Wire a query document and a client into a :class:`Paginator`.

    The first request uses the document without a cursor; every follow-up
    request uses the variant that declares ``$after``.
    """
    initial_query = document.render(bound)
    following_query = document.render(bound, include_after=True)

    def initial_request(first: int) -> Dict[str, Any]:
        return client.execute(initial_query, document.variables(bound, first=first, required=required))

    def next_request(first: int, after: str) -> Dict[str, Any]:
        return client.execute(following_query, document.variables(bound, first=first, after=after, required=required))

    return Paginator(
        initial_request=initial_request,
        next_request=next_request,
        flatten=flatten,
        extract=extract,
        page_size=client.page_size,
        limit=limit,
        on_page=on_page,
        label=label,
        columns=columns,
    )


def fetch_single(client, document: QueryDocument, bound: BoundFilters, extract: Extract,
                 required: Optional[Mapping[str, Any]] = None) -> Tuple[Any, List[Any]]:
    """Run a non-paginated document once.

    Returns:
        ``(payload, errors)``: the extracted payload and an empty list on
        success, or ``(None, errors)`` when the server or transport failed.
    """
    query = document.render(bound)
    variables = document.variables(bound, required=required)
    try:
        response = client.execute(query, variables)
    except TransportError as e:
        logger.error(f"Request failed: {e}")
        return None, [str(e)]

    if response.get("errors"):
        logger.error(f"API returned errors: {response['errors']}")
        return None, list(response["errors"])

    return extract(response.get("data") or {}), []
