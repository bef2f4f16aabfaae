"""Result containers returned by every query function."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class FetchStatus(Enum):
    """Outcome of a fetch sequence."""
    SUCCESS = "success"
    EMPTY = "empty"
    PARTIAL = "partial"   # some pages retained, then an error
    FAILED = "failed"     # error before any page was retained


@dataclass
class Page:
    """One retained page of a paginated sequence."""
    number: int
    rows: List[Dict[str, Any]]
    end_cursor: Optional[str] = None
    has_next_page: bool = False
    total_count: Optional[int] = None


@dataclass
class PageProgress:
    """Passed to ``on_page`` callbacks after each retained page."""
    page: int
    rows_on_page: int
    rows_so_far: int
    total_count: Optional[int]
    has_next_page: bool


@dataclass
class FetchResult:
    """A flat table plus the outcome of the requests that produced it.

    Attributes:
        columns: Fixed column order for the rows.
        rows: One dict per entity, keys matching ``columns``.
        status: See :class:`FetchStatus`.
        pages_fetched: Pages retained.
        requests_made: Requests sent, including a failed one.
        errors: GraphQL error payloads or transport error messages.
        failed_page: Number of the page whose request failed, if any.
        messages: Informational notes for the caller.
        ambiguous: Species names that matched several species, with candidates.
    """
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    status: FetchStatus = FetchStatus.EMPTY
    pages_fetched: int = 0
    requests_made: int = 0
    errors: List[Any] = field(default_factory=list)
    failed_page: Optional[int] = None
    messages: List[str] = field(default_factory=list)
    ambiguous: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def ok(self) -> bool:
        return self.status in (FetchStatus.SUCCESS, FetchStatus.EMPTY)

    def column(self, name: str) -> List[Any]:
        """Values of one column, in row order."""
        if name not in self.columns:
            raise KeyError(name)
        return [row.get(name) for row in self.rows]

    def note(self, message: str) -> None:
        self.messages.append(message)

    def extend(self, other: "FetchResult") -> None:
        """Append another result's rows and bookkeeping (used for per-station loops)."""
        for name in other.columns:
            if name not in self.columns:
                self.columns.append(name)
        self.rows.extend(other.rows)
        self.pages_fetched += other.pages_fetched
        self.requests_made += other.requests_made
        self.errors.extend(other.errors)
        self.messages.extend(other.messages)
        if other.failed_page is not None and self.failed_page is None:
            self.failed_page = other.failed_page

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": self.columns,
            "rows": self.rows,
            "status": self.status.value,
            "pages_fetched": self.pages_fetched,
            "requests_made": self.requests_made,
            "errors": self.errors,
            "failed_page": self.failed_page,
            "messages": self.messages,
            "ambiguous": self.ambiguous,
        }


def empty_result(columns: List[str], message: Optional[str] = None) -> FetchResult:
    result = FetchResult(columns=list(columns))
    if message:
        result.note(message)
    return result


def combine_status(results: List[FetchResult]) -> FetchStatus:
    """Overall status of several independent sequences run back to back."""
    if not results:
        return FetchStatus.EMPTY
    if any(r.status in (FetchStatus.FAILED, FetchStatus.PARTIAL) for r in results):
        if any(r.rows for r in results):
            return FetchStatus.PARTIAL
        return FetchStatus.FAILED
    if any(r.rows for r in results):
        return FetchStatus.SUCCESS
    return FetchStatus.EMPTY
