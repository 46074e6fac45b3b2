import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

from crm_connector.auth import Credential, build_headers
from crm_connector.config import DEFAULT_MAX_PAGES, ReaderConfig
from crm_connector.errors import RemoteFetchError
from crm_connector.pagination import PageCursor, PageRequest, build_cursor
from crm_connector.request_helpers import log_request

ProgressFn = Callable[[int], None]


class BufferedSequenceReader:
    """
    Forward-only lazy sequence of raw records over a PageCursor.

    Pages are fetched only when the buffer runs dry and the caller asks for
    another record; `max_records` (0 = unbounded) caps the emitted count and
    no fetch happens once it is reached. `max_pages` (0 = unbounded) stops
    after that many fetches.

        reader.open()
        try:
            for record in reader:
                ...
        finally:
            reader.close()
    """

    def __init__(
        self,
        cursor: PageCursor,
        transport: Any,
        credential: Optional[Credential] = None,
        max_records: int = 0,
        max_pages: int = DEFAULT_MAX_PAGES,
        on_progress: Optional[ProgressFn] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.cursor = cursor
        self.transport = transport
        self.credential = credential or Credential.none()
        self.cap = max(0, int(max_records or 0))
        self.max_pages = max(0, int(max_pages or 0))
        self.on_progress = on_progress
        self.log = log or logging.getLogger(__name__)

        self._is_open = False
        self._headers: Optional[Dict[str, str]] = None
        self._reset_state()

    @classmethod
    def from_config(
        cls,
        cfg: ReaderConfig,
        transport: Any,
        on_progress: Optional[ProgressFn] = None,
        log: Optional[logging.Logger] = None,
    ) -> "BufferedSequenceReader":
        request = PageRequest(
            base_url=cfg.base_url,
            path=cfg.path,
            page_size=cfg.page_size,
            filter=cfg.filter,
            expand=cfg.expand,
        )
        return cls(
            build_cursor(cfg.mode, request),
            transport,
            credential=cfg.credential,
            max_records=cfg.max_records,
            max_pages=cfg.max_pages,
            on_progress=on_progress,
            log=log,
        )

    def _reset_state(self) -> None:
        self._buffer: List[Dict[str, Any]] = []
        self._index = 0
        self._has_more = True
        self._emitted = 0
        self._pages = 0

    # ------------ lifecycle ------------
    def open(self) -> "BufferedSequenceReader":
        self.cursor.reset()
        self._reset_state()
        self._headers = build_headers(self.credential)
        self._is_open = True
        return self

    def close(self) -> None:
        self._reset_state()
        self._headers = None
        self._is_open = False

    # ------------ state ------------
    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def emitted_count(self) -> int:
        return self._emitted

    @property
    def pages_fetched(self) -> int:
        return self._pages

    # ------------ iteration ------------
    def read_records(self) -> Iterator[Dict[str, Any]]:
        return iter(self)

    def __iter__(self) -> "BufferedSequenceReader":
        return self

    def __next__(self) -> Dict[str, Any]:
        if not self._is_open:
            raise RuntimeError("reader is not open; call open() first")

        while True:
            if self.cap and self._emitted >= self.cap:
                self._has_more = False
                raise StopIteration

            if self._index < len(self._buffer):
                record = self._buffer[self._index]
                self._index += 1
                self._emitted += 1
                if self.on_progress:
                    self.on_progress(self._emitted)
                return record

            if not self._has_more:
                raise StopIteration
            self._fetch_next_page()

    def _fetch_next_page(self) -> None:
        if self.max_pages and self._pages >= self.max_pages:
            self.log.warning(
                f"[reader] max_pages={self.max_pages} reached; stopping"
            )
            self._has_more = False
            return

        log_request(
            self.log, "GET", self.cursor.build_url(), self._headers, "[reader] "
        )
        try:
            result = self.cursor.fetch(self.transport.get, self._headers)
        except RemoteFetchError:
            self._has_more = False
            raise

        self._pages += 1
        self._buffer = result.records
        self._index = 0
        if self.cursor.has_more(result):
            self.cursor.advance()
        else:
            self._has_more = False
