# Overview: httpx client for the product search API.

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

from .filters import FilterOptions


class SearchClientError(RuntimeError):
    """The search API could not be reached or answered with an error."""


@dataclass(frozen=True)
class SearchPage:
    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = 1
    mode: str = "text"

    @classmethod
    def from_response(cls, data: dict) -> "SearchPage":
        pagination = data.get("pagination") or {}
        items = list(data.get("items") or [])
        return cls(
            items=items,
            total=int(pagination.get("total", len(items))),
            page=int(pagination.get("page", 1)),
            total_pages=int(pagination.get("total_pages", 1)),
            mode=data.get("mode", "text"),
        )


class SearchClient:
    """
    Calls GET /api/search.

    Instances are callable with (query, filters, page, page_size) so they
    can be handed straight to a SearchSession.
    """

    def __init__(self, base_url: str, *, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def search(self, query: str, filters: FilterOptions, page: int = 1, page_size: int = 16) -> SearchPage:
        params = {"q": query, **filters.to_query_params(), "per_page": str(page_size)}
        if page > 1:
            params["page"] = str(page)
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.get(f"{self.base_url}/api/search", params=params)
                response.raise_for_status()
                return SearchPage.from_response(response.json())
        except httpx.HTTPStatusError as e:
            raise SearchClientError(f"Search failed with HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise SearchClientError(f"Search request failed: {e}") from e

    __call__ = search
