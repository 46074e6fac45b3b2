from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote

from crm_connector.errors import ConfigError, RemoteError, RemoteFetchError
from crm_connector.parsing import (
    explicit_has_more,
    extract_records,
    total_count,
    total_pages,
)
from crm_connector.request_helpers import build_url

GetFn = Callable[[str, Dict[str, str]], Any]

# SAP C4C returns human readable labels alongside codes with this flag.
ODATA_VENDOR_FLAG = ("$sap-label", "true")


class MoreAvailable(Enum):
    EXPLICIT_TRUE = "explicit_true"
    EXPLICIT_FALSE = "explicit_false"
    UNKNOWN = "unknown"

    @classmethod
    def from_flag(cls, flag: Optional[bool]) -> "MoreAvailable":
        if flag is None:
            return cls.UNKNOWN
        return cls.EXPLICIT_TRUE if flag else cls.EXPLICIT_FALSE


@dataclass(frozen=True)
class PageRequest:
    base_url: str
    path: str = ""
    page_size: int = 100
    start: Optional[int] = None
    filter: Optional[str] = None
    expand: Optional[str] = None

    def __post_init__(self):
        if not self.base_url:
            raise ConfigError("PageRequest needs a base_url")
        try:
            size = int(self.page_size)
        except (TypeError, ValueError):
            size = 0
        if size < 1:
            raise ConfigError(
                f"page_size must be a positive integer, got {self.page_size!r}"
            )


@dataclass(frozen=True)
class PageResult:
    records: List[Dict[str, Any]] = field(default_factory=list)
    more_available: MoreAvailable = MoreAvailable.UNKNOWN
    total_pages: Optional[int] = None
    total_count: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "PageResult":
        return cls(
            records=list(extract_records(payload)),
            more_available=MoreAvailable.from_flag(explicit_has_more(payload)),
            total_pages=total_pages(payload),
            total_count=total_count(payload),
        )


def encode_query(pairs: List[Tuple[str, Any]]) -> str:
    return "&".join(f"{k}={quote(str(v), safe='')}" for k, v in pairs)


class PageCursor(ABC):
    """
    Owns the pagination position for one read pass. `fetch` issues exactly
    one GET for the current position; `advance` moves one page forward and
    is only called after a page judged non-terminal.
    """

    mode = ""
    default_start = 0

    def __init__(self, request: PageRequest):
        self.request = request
        self.position = self.start

    @property
    def start(self) -> int:
        if self.request.start is None:
            return self.default_start
        return int(self.request.start)

    @property
    def page_size(self) -> int:
        return int(self.request.page_size)

    def reset(self) -> None:
        self.position = self.start

    def build_url(self) -> str:
        base = build_url(self.request.base_url, self.request.path)
        return f"{base}?{encode_query(self.query_pairs())}"

    def fetch(self, get: GetFn, headers: Dict[str, str]) -> PageResult:
        url = self.build_url()
        try:
            payload = get(url, headers)
        except RemoteError as e:
            raise RemoteFetchError(url, e) from e
        return PageResult.from_payload(payload)

    def has_more(self, result: PageResult) -> bool:
        # explicit flag > total pages / total count > short page
        if result.more_available is MoreAvailable.EXPLICIT_TRUE:
            return True
        if result.more_available is MoreAvailable.EXPLICIT_FALSE:
            return False
        if result.total_pages is not None:
            return self.current_page() < result.total_pages
        if result.total_count is not None:
            return self.covered(result) < result.total_count
        return len(result.records) >= self.page_size

    @abstractmethod
    def query_pairs(self) -> List[Tuple[str, Any]]:
        ...

    @abstractmethod
    def current_page(self) -> int:
        """1-based number of the page at the current position."""

    @abstractmethod
    def covered(self, result: PageResult) -> int:
        """Records covered up to and including `result`."""

    @abstractmethod
    def advance(self) -> None:
        ...


class ODataCursor(PageCursor):
    """$top/$skip offset paging."""

    mode = "odata"
    default_start = 0

    def query_pairs(self) -> List[Tuple[str, Any]]:
        pairs: List[Tuple[str, Any]] = [
            ("$top", self.page_size),
            ("$skip", self.position),
            ODATA_VENDOR_FLAG,
        ]
        if self.request.filter:
            pairs.append(("$filter", self.request.filter))
        if self.request.expand:
            pairs.append(("$expand", self.request.expand))
        return pairs

    def current_page(self) -> int:
        return self.position // self.page_size + 1

    def covered(self, result: PageResult) -> int:
        return self.position + len(result.records)

    def advance(self) -> None:
        self.position += self.page_size


class PageNumberCursor(PageCursor):
    """page/page_size paging, pages numbered from 1."""

    mode = "page"
    default_start = 1

    def query_pairs(self) -> List[Tuple[str, Any]]:
        return [("page", self.position), ("page_size", self.page_size)]

    def current_page(self) -> int:
        return self.position

    def covered(self, result: PageResult) -> int:
        return (self.position - 1) * self.page_size + len(result.records)

    def advance(self) -> None:
        self.position += 1


CURSORS = {c.mode: c for c in (ODataCursor, PageNumberCursor)}


def build_cursor(mode: str, request: PageRequest) -> PageCursor:
    cls = CURSORS.get((mode or "").lower())
    if cls is None:
        raise ConfigError(f"Unsupported pagination mode: {mode}")
    return cls(request)
