# Overview: Search page state machine keeping query, filters, URL and results in sync.

"""
Search Session

================================================================================
STATE
================================================================================
query text, filters, current page, results (items/total/total_pages/mode),
the current URL (via NavigationHistory) and the persisted filters
(via FilterStorage).

TRANSITIONS
    type_query(text)   query updates now; a search runs 300 ms after the last
                       keystroke and replaces the URL's q
    submit()           cancels the pending keystroke search, searches now
    set_filters(f)     cancels the pending keystroke search, persists f,
                       replaces q and the URL filter params, drops page,
                       searches now
    reset_filters()    cancels the pending keystroke search,
                       filters -> {sortBy: relevance}, strips filter params and
                       page, keeps q, searches if there is a query
    clear_query()      cancels pending work, empties results, strips q;
                       issues no request
    go_to_page(n)      fetches page n, pushes a history entry, scrolls to top

A blank query never reaches the search client.

Every request gets an increasing id. A response is applied only when its id
is still the latest one issued, so a slow response can never overwrite the
results of a newer request.
================================================================================
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol
from urllib.parse import parse_qsl, urlencode, urlsplit

from .client import SearchClientError, SearchPage
from .filters import (
    FILTER_PARAMS,
    FilterOptions,
    has_filter_params,
    parse_page,
)
from .storage import FilterStorage

logger = logging.getLogger(__name__)

SEARCH_DEBOUNCE_SECONDS = 0.3
PAGE_SIZE = 16
SEARCH_PATH = "/search"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """Runs callbacks on threading.Timer threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class Debouncer:
    """Runs only the last of a burst of calls, `delay` seconds after it."""

    def __init__(self, scheduler: Scheduler, delay: float = SEARCH_DEBOUNCE_SECONDS):
        self._scheduler = scheduler
        self._delay = delay
        self._handle: Optional[TimerHandle] = None
        # Bumped by every call/cancel; a timer only runs if its generation is current.
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._handle is not None

    def call(self, callback: Callable[[], None]) -> None:
        with self._lock:
            self._cancel_locked()
            generation = self._generation

            def fire():
                with self._lock:
                    if generation != self._generation:
                        return
                    self._handle = None
                callback()

            self._handle = self._scheduler.call_later(self._delay, fire)

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class NavigationHistory:
    """Browser-like history stack of URLs; push adds an entry, replace rewrites the top."""

    def __init__(self, initial_url: str = SEARCH_PATH):
        self.entries: list[str] = [initial_url]

    @property
    def current(self) -> str:
        return self.entries[-1]

    def push(self, url: str) -> None:
        self.entries.append(url)

    def replace(self, url: str) -> None:
        self.entries[-1] = url


def build_url(path: str, params: dict[str, str]) -> str:
    if not params:
        return path
    return f"{path}?{urlencode(params)}"


def split_url(url: str) -> tuple[str, dict[str, str]]:
    parts = urlsplit(url)
    return parts.path or SEARCH_PATH, dict(parse_qsl(parts.query, keep_blank_values=False))


@dataclass
class SearchResults:
    items: list = field(default_factory=list)
    total: int = 0
    total_pages: int = 0
    mode: Optional[str] = None


class SearchSession:
    def __init__(
        self,
        fetch: Callable[[str, FilterOptions, int, int], SearchPage],
        *,
        history: Optional[NavigationHistory] = None,
        storage: Optional[FilterStorage] = None,
        scheduler: Optional[Scheduler] = None,
        on_scroll_top: Optional[Callable[[], None]] = None,
        page_size: int = PAGE_SIZE,
        debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS,
    ):
        self._fetch = fetch
        self.history = history or NavigationHistory()
        self.storage = storage or FilterStorage()
        self._debouncer = Debouncer(scheduler or ThreadingScheduler(), debounce_seconds)
        self._on_scroll_top = on_scroll_top
        self.page_size = page_size

        self._lock = threading.RLock()
        self._latest_request_id = 0

        self.query = ""
        self.filters = FilterOptions()
        self.page = 1
        self.results = SearchResults()
        self.loading = False
        self.error: Optional[str] = None

    # -- URL helpers ----------------------------------------------------------

    @property
    def url(self) -> str:
        return self.history.current

    def _params(self) -> dict[str, str]:
        return split_url(self.history.current)[1]

    def _write_url(self, params: dict[str, str], *, push: bool = False) -> None:
        path = split_url(self.history.current)[0]
        url = build_url(path, params)
        if push:
            self.history.push(url)
        else:
            self.history.replace(url)

    def _with_query(self, params: dict[str, str]) -> dict[str, str]:
        params = {k: v for k, v in params.items() if k != "q"}
        if self.query.strip():
            params = {"q": self.query.strip(), **params}
        return params

    def _with_filters(self, params: dict[str, str]) -> dict[str, str]:
        params = {k: v for k, v in params.items() if k not in FILTER_PARAMS and k != "page"}
        params.update(self.filters.to_query_params())
        return params

    # -- requests -------------------------------------------------------------

    def _next_request_id(self) -> int:
        with self._lock:
            self._latest_request_id += 1
            return self._latest_request_id

    def _run_search(self, page: int) -> bool:
        """Fetch `page` for the current query/filters. Returns True if the response was applied."""
        with self._lock:
            query = self.query.strip()
            if not query:
                return False
            request_id = self._next_request_id()
            filters = self.filters
            self.loading = True
            self.error = None

        try:
            result = self._fetch(query, filters, page, self.page_size)
        except SearchClientError as e:
            with self._lock:
                if request_id != self._latest_request_id:
                    return False
                logger.warning("Search for %r failed: %s", query, e)
                self.loading = False
                self.error = str(e)
                self.results = SearchResults()
            return False

        with self._lock:
            if request_id != self._latest_request_id:
                logger.debug("Discarding stale search response %s (latest %s)", request_id, self._latest_request_id)
                return False
            self.loading = False
            self.page = page
            self.results = SearchResults(
                items=list(result.items),
                total=result.total,
                total_pages=result.total_pages,
                mode=result.mode,
            )
        return True

    def _invalidate_in_flight(self) -> None:
        with self._lock:
            self._next_request_id()
            self.loading = False

    # -- transitions ----------------------------------------------------------
    #
    # State and URL writes happen under self._lock; the fetch itself runs
    # outside it. The debounced search arrives on a timer thread.

    def restore(self, url: str) -> None:
        """
        Load state from a URL (page load or back/forward).

        Filters come from the URL when it encodes any filter parameter;
        otherwise the stored filters are used.
        """
        self._debouncer.cancel()
        _path, params = split_url(url)
        with self._lock:
            self.history.replace(url)

            self.query = params.get("q", "")
            self.page = parse_page(params)

            if has_filter_params(params):
                self.filters = FilterOptions.from_query_params(params)
            else:
                stored = self.storage.load()
                self.filters = stored or FilterOptions()
                if not self.filters.is_default:
                    restored = self._with_filters(params)
                    if self.page > 1:
                        restored["page"] = str(self.page)
                    self._write_url(restored)

            page = self.page
            if not self.query.strip():
                self._invalidate_in_flight()
                self.results = SearchResults()
                return
        self._run_search(page)

    def type_query(self, text: str) -> None:
        with self._lock:
            self.query = text
        self._debouncer.call(self._debounced_search)

    def _debounced_search(self) -> None:
        with self._lock:
            params = {k: v for k, v in self._params().items() if k != "page"}
            self._write_url(self._with_query(params))
            if not self.query.strip():
                self._invalidate_in_flight()
                self.page = 1
                self.results = SearchResults()
                return
        self._run_search(1)

    def submit(self) -> None:
        self._debouncer.cancel()
        with self._lock:
            params = {k: v for k, v in self._params().items() if k != "page"}
            self._write_url(self._with_query(params))
        self._run_search(1)

    def set_filters(self, filters: FilterOptions) -> None:
        """Persist `filters`, rewrite q/filter params (dropping page) and search now."""
        self._debouncer.cancel()
        with self._lock:
            self.filters = filters
            self.storage.save(filters)
            self.page = 1
            self._write_url(self._with_filters(self._with_query(self._params())))
        self._run_search(1)

    def reset_filters(self) -> None:
        self._debouncer.cancel()
        with self._lock:
            self.filters = FilterOptions()
            self.storage.save(self.filters)
            self.page = 1
            params = {k: v for k, v in self._params().items() if k not in FILTER_PARAMS and k != "page"}
            self._write_url(self._with_query(params))
        self._run_search(1)

    def clear_query(self) -> None:
        self._debouncer.cancel()
        with self._lock:
            self._invalidate_in_flight()
            self.query = ""
            self.page = 1
            self.error = None
            self.results = SearchResults()
            params = {k: v for k, v in self._params().items() if k not in ("q", "page")}
            self._write_url(params)

    def go_to_page(self, page: int) -> None:
        if page < 1:
            raise ValueError("page must be >= 1")
        if not self._run_search(page):
            return
        with self._lock:
            params = {k: v for k, v in self._params().items() if k != "page"}
            if page > 1:
                params["page"] = str(page)
            self._write_url(params, push=True)
        if self._on_scroll_top is not None:
            self._on_scroll_top()
