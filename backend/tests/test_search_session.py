"""
Search session tests.

The session runs against a fake fetch function and a manual scheduler, so
debounce timing is driven by the test.
"""

import json
import threading
import time
from decimal import Decimal

import pytest

from storefront.search import (
    FilterOptions,
    FilterStorage,
    NavigationHistory,
    SearchClientError,
    SearchPage,
    SearchSession,
)
from storefront.search.session import Debouncer, ThreadingScheduler, split_url


class ManualScheduler:
    """Collects scheduled callbacks; the test fires them explicitly."""

    class Handle:
        def __init__(self, scheduler, callback):
            self._scheduler = scheduler
            self.callback = callback
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.handles = []
        self.delays = []

    def call_later(self, delay, callback):
        handle = self.Handle(self, callback)
        self.handles.append(handle)
        self.delays.append(delay)
        return handle

    def fire(self):
        live = [h for h in self.handles if not h.cancelled]
        self.handles = []
        for handle in live:
            handle.callback()

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled]


class FakeFetch:
    def __init__(self):
        self.calls = []
        self.on_call = None

    def __call__(self, query, filters, page, page_size):
        self.calls.append((query, filters, page, page_size))
        if self.on_call is not None:
            hook, self.on_call = self.on_call, None
            hook()
        return SearchPage(
            items=[{"name": f"{query} result p{page}"}],
            total=40,
            page=page,
            total_pages=3,
            mode="text",
        )


@pytest.fixture
def fetch():
    return FakeFetch()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def store():
    return {}


@pytest.fixture
def session(fetch, scheduler, store):
    return SearchSession(
        fetch,
        history=NavigationHistory("/search"),
        storage=FilterStorage(store),
        scheduler=scheduler,
    )


def params_of(session):
    return split_url(session.url)[1]


# =============================================================================
# TYPING / DEBOUNCE
# =============================================================================


class TestTyping:

    def test_query_updates_immediately_search_waits(self, session, fetch, scheduler):
        session.type_query("case")

        assert session.query == "case"
        assert fetch.calls == []
        assert scheduler.delays == [0.3]

    def test_only_last_keystroke_searches(self, session, fetch, scheduler):
        session.type_query("c")
        session.type_query("ca")
        session.type_query("case")
        scheduler.fire()

        assert [c[0] for c in fetch.calls] == ["case"]
        assert params_of(session) == {"q": "case"}
        assert len(session.history.entries) == 1

    def test_debounced_search_drops_page(self, session, fetch, scheduler):
        session.restore("/search?q=case&page=2")
        session.type_query("charger")
        scheduler.fire()

        assert params_of(session) == {"q": "charger"}
        assert fetch.calls[-1][2] == 1

    def test_submit_cancels_debounce(self, session, fetch, scheduler):
        session.type_query("case")
        session.submit()
        scheduler.fire()

        assert len(fetch.calls) == 1
        assert params_of(session) == {"q": "case"}

    def test_blank_query_never_requests(self, session, fetch, scheduler):
        session.type_query("   ")
        scheduler.fire()
        session.submit()

        assert fetch.calls == []


# =============================================================================
# CLEAR / RESET
# =============================================================================


class TestClearAndReset:

    def test_clear_query_strips_q_and_empties_results(self, session, fetch, scheduler):
        session.restore("/search?q=case&inStock=true&page=2")
        calls_before = len(fetch.calls)
        assert session.results.items

        session.type_query("case cover")
        session.clear_query()
        scheduler.fire()

        assert session.query == ""
        assert session.results.items == []
        assert session.results.total == 0
        assert len(fetch.calls) == calls_before
        assert params_of(session) == {"inStock": "true"}

    def test_reset_after_price_range_keeps_query(self, session, fetch, store):
        session.restore("/search?q=case")
        session.set_filters(FilterOptions(min_price=Decimal("50"), max_price=Decimal("150")))

        assert params_of(session) == {"q": "case", "minPrice": "50", "maxPrice": "150"}
        assert json.loads(store["searchFilters"])["minPrice"] == 50

        session.reset_filters()

        assert json.loads(store["searchFilters"]) == {"sortBy": "relevance"}
        assert params_of(session) == {"q": "case"}
        assert session.filters == FilterOptions()
        assert fetch.calls[-1][0] == "case"

    def test_reset_without_query_issues_no_request(self, session, fetch):
        session.set_filters(FilterOptions(in_stock_only=True))
        session.reset_filters()

        assert fetch.calls == []


# =============================================================================
# FILTERS
# =============================================================================


class TestFilters:

    def test_filter_change_replaces_url_and_drops_page(self, session, fetch):
        session.restore("/search?q=case&page=3")
        session.set_filters(FilterOptions(brand_ids=(2, 5), sort_by="priceAsc"))

        assert params_of(session) == {"q": "case", "brands": "2,5", "sort": "priceAsc"}
        assert len(session.history.entries) == 1
        assert fetch.calls[-1][2] == 1
        assert session.page == 1

    def test_filter_change_cancels_pending_keystroke_search(self, session, fetch, scheduler):
        session.type_query("iphone")
        session.set_filters(FilterOptions(min_price=Decimal("50"), max_price=Decimal("150")))

        assert params_of(session) == {"q": "iphone", "minPrice": "50", "maxPrice": "150"}
        assert [c[0] for c in fetch.calls] == ["iphone"]

        scheduler.fire()

        assert [c[0] for c in fetch.calls] == ["iphone"]

    def test_reset_cancels_pending_keystroke_search(self, session, fetch, scheduler):
        session.restore("/search?q=case&inStock=true")
        session.type_query("charger")
        session.reset_filters()
        scheduler.fire()

        assert params_of(session) == {"q": "charger"}
        assert [c[0] for c in fetch.calls] == ["case", "charger"]

    def test_filter_change_without_query_resets_page(self, session, fetch):
        session.restore("/search?page=3")
        assert session.page == 3

        session.set_filters(FilterOptions(in_stock_only=True))

        assert session.page == 1
        assert params_of(session) == {"inStock": "true"}
        assert fetch.calls == []

    def test_reset_without_query_resets_page(self, session, fetch):
        session.restore("/search?inStock=true&page=2")

        session.reset_filters()

        assert session.page == 1
        assert params_of(session) == {}
        assert fetch.calls == []


# =============================================================================
# DEBOUNCER
# =============================================================================


class TestDebouncer:

    def test_superseded_timer_does_not_run_or_clear_pending(self, scheduler):
        ran = []
        debouncer = Debouncer(scheduler, delay=0.3)

        debouncer.call(lambda: ran.append("first"))
        first = scheduler.handles[0]
        debouncer.call(lambda: ran.append("second"))

        # The first timer was already running when it got cancelled.
        first.callback()

        assert ran == []
        assert debouncer.pending is True

        scheduler.handles[1].callback()

        assert ran == ["second"]
        assert debouncer.pending is False

    def test_cancel_stops_current_timer(self, scheduler):
        ran = []
        debouncer = Debouncer(scheduler, delay=0.3)

        debouncer.call(lambda: ran.append("x"))
        handle = scheduler.handles[0]
        debouncer.cancel()
        handle.callback()

        assert handle.cancelled is True
        assert ran == []
        assert debouncer.pending is False

    def test_threaded_burst_searches_once(self, fetch, store):
        done = threading.Event()
        fetch.on_call = done.set
        session = SearchSession(
            fetch,
            history=NavigationHistory("/search"),
            storage=FilterStorage(store),
            scheduler=ThreadingScheduler(),
            debounce_seconds=0.2,
        )

        session.type_query("c")
        session.type_query("ca")
        session.type_query("case")

        assert done.wait(2)
        assert [c[0] for c in fetch.calls] == ["case"]
        assert params_of(session) == {"q": "case"}

    def test_threaded_clear_cancels_search(self, fetch, store):
        session = SearchSession(
            fetch,
            history=NavigationHistory("/search?q=case"),
            storage=FilterStorage(store),
            scheduler=ThreadingScheduler(),
            debounce_seconds=0.02,
        )

        session.type_query("case cover")
        session.clear_query()
        time.sleep(0.1)

        assert fetch.calls == []
        assert session.url == "/search"


# =============================================================================
# RESTORE
# =============================================================================


class TestRestore:

    def test_url_filters_win_over_stored(self, session, store):
        store["searchFilters"] = json.dumps({"sortBy": "nameAsc", "inStockOnly": True})

        session.restore("/search?q=case&maxPrice=20")

        assert session.filters == FilterOptions(max_price=Decimal("20"))

    def test_stored_filters_used_when_url_has_none(self, session, store):
        store["searchFilters"] = json.dumps({"sortBy": "nameAsc", "inStockOnly": True})

        session.restore("/search?q=case")

        assert session.filters == FilterOptions(sort_by="nameAsc", in_stock_only=True)
        assert params_of(session) == {"q": "case", "inStock": "true", "sort": "nameAsc"}

    def test_unreadable_storage_is_ignored(self, session, store):
        store["searchFilters"] = "{not json"

        session.restore("/search?q=case")

        assert session.filters == FilterOptions()

    def test_restore_fetches_page_from_url(self, session, fetch):
        session.restore("/search?q=case&page=2")

        assert fetch.calls == [("case", FilterOptions(), 2, 16)]
        assert session.page == 2


# =============================================================================
# PAGINATION
# =============================================================================


class TestPagination:

    def test_go_to_page_pushes_history_and_scrolls(self, fetch, scheduler, store):
        scrolled = []
        session = SearchSession(
            fetch,
            history=NavigationHistory("/search"),
            storage=FilterStorage(store),
            scheduler=scheduler,
            on_scroll_top=lambda: scrolled.append(True),
        )
        session.restore("/search?q=case")

        session.go_to_page(2)

        assert session.history.entries == ["/search?q=case", "/search?q=case&page=2"]
        assert session.page == 2
        assert fetch.calls[-1][2:] == (2, 16)
        assert scrolled == [True]


# =============================================================================
# STALE RESPONSES / ERRORS
# =============================================================================


class TestResponseOrdering:

    def test_stale_response_is_discarded(self, session, fetch, scheduler):
        session.type_query("old")

        def newer_search_lands_first():
            session.type_query("new")
            session.submit()

        fetch.on_call = newer_search_lands_first
        scheduler.fire()

        assert [c[0] for c in fetch.calls] == ["old", "new"]
        assert session.results.items == [{"name": "new result p1"}]

    def test_response_after_clear_is_discarded(self, session, fetch, scheduler):
        session.type_query("case")
        fetch.on_call = session.clear_query
        scheduler.fire()

        assert session.results.items == []
        assert session.query == ""

    def test_client_error_sets_error(self, store, scheduler):
        def failing(query, filters, page, page_size):
            raise SearchClientError("Search failed with HTTP 503")

        session = SearchSession(failing, storage=FilterStorage(store), scheduler=scheduler)
        session.restore("/search?q=case")

        assert session.error == "Search failed with HTTP 503"
        assert session.results.items == []
        assert session.loading is False
