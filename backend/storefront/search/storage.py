# Overview: Persistence of the last-used search filters in a key-value store.

from __future__ import annotations

import json
import logging
from typing import MutableMapping, Optional

from .filters import FilterOptions

logger = logging.getLogger(__name__)

STORAGE_KEY = "searchFilters"


class FilterStorage:
    """
    Stores filters as JSON under one key of a string -> string mapping.

    Any MutableMapping works: a dict in tests, a browser-storage bridge,
    or a per-user cache row.
    """

    def __init__(self, store: Optional[MutableMapping[str, str]] = None, *, key: str = STORAGE_KEY):
        self._store = store if store is not None else {}
        self.key = key

    def save(self, filters: FilterOptions) -> None:
        self._store[self.key] = json.dumps(filters.to_storage())

    def load(self) -> Optional[FilterOptions]:
        raw = self._store.get(self.key)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable stored filters under %r", self.key)
            return None
        if not isinstance(data, dict):
            logger.warning("Discarding stored filters under %r: not an object", self.key)
            return None
        return FilterOptions.from_storage(data)

    def clear(self) -> None:
        self._store.pop(self.key, None)
