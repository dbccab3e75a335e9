from .filters import (
    DEFAULT_SORT,
    SORT_OPTIONS,
    FilterHelpers,
    FilterOptions,
    FilterParseError,
    has_filter_params,
    parse_page,
)
from .storage import STORAGE_KEY, FilterStorage
from .client import SearchClient, SearchClientError, SearchPage
from .session import (
    PAGE_SIZE,
    SEARCH_DEBOUNCE_SECONDS,
    Debouncer,
    NavigationHistory,
    SearchResults,
    SearchSession,
    ThreadingScheduler,
)

__all__ = [
    'DEFAULT_SORT', 'SORT_OPTIONS', 'FilterHelpers', 'FilterOptions', 'FilterParseError',
    'has_filter_params', 'parse_page',
    'STORAGE_KEY', 'FilterStorage',
    'SearchClient', 'SearchClientError', 'SearchPage',
    'PAGE_SIZE', 'SEARCH_DEBOUNCE_SECONDS', 'Debouncer', 'NavigationHistory',
    'SearchResults', 'SearchSession', 'ThreadingScheduler',
]
