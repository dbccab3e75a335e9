# Overview: Search filter model, URL query codec and filter-list helpers.

"""
Search filters and their URL representation.

URL PARAMETERS (defaults are never written):
    q           query text
    page        1-based page (omitted when 1)
    minPrice    lower price bound, currency units
    maxPrice    upper price bound, currency units
    inStock     "true" (omitted when false)
    categories  comma-joined category ids
    brands      comma-joined brand ids
    sort        sort option (omitted when "relevance")
    brand, category, model, condition
                single-value filters used by the refurbished listing

Parsing is lenient by default: a malformed value is dropped. The API
parses with strict=True so malformed values are rejected instead.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Mapping, Optional

SORT_OPTIONS = ("relevance", "newest", "oldest", "priceAsc", "priceDesc", "nameAsc", "nameDesc")
DEFAULT_SORT = "relevance"

FILTER_PARAMS = (
    "minPrice",
    "maxPrice",
    "inStock",
    "categories",
    "brands",
    "sort",
    "brand",
    "category",
    "model",
    "condition",
)


class FilterParseError(ValueError):
    """A URL parameter could not be parsed."""


def _format_number(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def _to_cents(units: Optional[Decimal]) -> Optional[int]:
    if units is None:
        return None
    return int((units * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _parse_price(name: str, raw: str) -> Decimal:
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise FilterParseError(f"{name} must be a number")
    if not value.is_finite() or value < 0:
        raise FilterParseError(f"{name} must be a non-negative number")
    return value


def _parse_id_list(name: str, raw: str) -> list[int]:
    ids: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit():
            raise FilterParseError(f"{name} must be a comma-separated list of ids")
        value = int(part)
        if value not in ids:
            ids.append(value)
    return ids


@dataclass(frozen=True)
class FilterOptions:
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    category_ids: tuple[int, ...] = field(default_factory=tuple)
    brand_ids: tuple[int, ...] = field(default_factory=tuple)
    in_stock_only: bool = False
    sort_by: str = DEFAULT_SORT
    condition: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    model: Optional[str] = None

    def with_changes(self, **changes) -> "FilterOptions":
        for key in ("category_ids", "brand_ids"):
            if key in changes and changes[key] is not None:
                changes[key] = tuple(changes[key])
        return replace(self, **changes)

    @property
    def min_price_cents(self) -> Optional[int]:
        return _to_cents(self.min_price)

    @property
    def max_price_cents(self) -> Optional[int]:
        return _to_cents(self.max_price)

    @property
    def is_default(self) -> bool:
        return self == FilterOptions()

    # -- URL -----------------------------------------------------------------

    def to_query_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.min_price is not None:
            params["minPrice"] = _format_number(self.min_price)
        if self.max_price is not None:
            params["maxPrice"] = _format_number(self.max_price)
        if self.in_stock_only:
            params["inStock"] = "true"
        if self.category_ids:
            params["categories"] = ",".join(str(i) for i in self.category_ids)
        if self.brand_ids:
            params["brands"] = ",".join(str(i) for i in self.brand_ids)
        if self.sort_by and self.sort_by != DEFAULT_SORT:
            params["sort"] = self.sort_by
        for key in ("brand", "category", "model", "condition"):
            value = getattr(self, key)
            if value:
                params[key] = value
        return params

    @classmethod
    def from_query_params(cls, params: Mapping[str, str], *, strict: bool = False) -> "FilterOptions":
        values: dict = {}

        def parse(name: str, fn):
            raw = params.get(name)
            if raw is None or raw == "":
                return
            try:
                fn(raw)
            except FilterParseError:
                if strict:
                    raise

        def set_min(raw):
            values["min_price"] = _parse_price("minPrice", raw)

        def set_max(raw):
            values["max_price"] = _parse_price("maxPrice", raw)

        def set_in_stock(raw):
            lowered = raw.strip().lower()
            if lowered not in ("true", "false"):
                raise FilterParseError("inStock must be true or false")
            values["in_stock_only"] = lowered == "true"

        def set_categories(raw):
            values["category_ids"] = tuple(_parse_id_list("categories", raw))

        def set_brands(raw):
            values["brand_ids"] = tuple(_parse_id_list("brands", raw))

        def set_sort(raw):
            if raw not in SORT_OPTIONS:
                raise FilterParseError(f"sort must be one of: {', '.join(SORT_OPTIONS)}")
            values["sort_by"] = raw

        parse("minPrice", set_min)
        parse("maxPrice", set_max)
        parse("inStock", set_in_stock)
        parse("categories", set_categories)
        parse("brands", set_brands)
        parse("sort", set_sort)

        for key in ("brand", "category", "model", "condition"):
            raw = params.get(key)
            if raw and raw.strip():
                values[key] = raw.strip()

        if (
            strict
            and values.get("min_price") is not None
            and values.get("max_price") is not None
            and values["min_price"] > values["max_price"]
        ):
            raise FilterParseError("minPrice cannot be greater than maxPrice")

        return cls(**values)

    # -- persistence (camelCase, same shape the web client stores) -------------

    def to_storage(self) -> dict:
        data: dict = {"sortBy": self.sort_by or DEFAULT_SORT}
        if self.min_price is not None:
            data["minPrice"] = float(self.min_price) if self.min_price % 1 else int(self.min_price)
        if self.max_price is not None:
            data["maxPrice"] = float(self.max_price) if self.max_price % 1 else int(self.max_price)
        if self.category_ids:
            data["categoryIds"] = list(self.category_ids)
        if self.brand_ids:
            data["brandIds"] = list(self.brand_ids)
        if self.in_stock_only:
            data["inStockOnly"] = True
        for key in ("condition", "brand", "category", "model"):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data

    @classmethod
    def from_storage(cls, data: Mapping) -> "FilterOptions":
        """Rebuild from a stored dict, ignoring anything that does not fit."""
        values: dict = {}

        for key, target in (("minPrice", "min_price"), ("maxPrice", "max_price")):
            raw = data.get(key)
            if isinstance(raw, (int, float)) and not isinstance(raw, bool) and raw >= 0:
                values[target] = Decimal(str(raw))

        for key, target in (("categoryIds", "category_ids"), ("brandIds", "brand_ids")):
            raw = data.get(key)
            if isinstance(raw, list):
                values[target] = tuple(
                    i for i in raw if isinstance(i, int) and not isinstance(i, bool)
                )

        if data.get("inStockOnly") is True:
            values["in_stock_only"] = True

        sort_by = data.get("sortBy")
        if sort_by in SORT_OPTIONS:
            values["sort_by"] = sort_by

        for key in ("condition", "brand", "category", "model"):
            raw = data.get(key)
            if isinstance(raw, str) and raw.strip():
                values[key] = raw.strip()

        return cls(**values)


def has_filter_params(params: Mapping[str, str]) -> bool:
    """True when the URL encodes at least one filter parameter."""
    return any(params.get(name) not in (None, "") for name in FILTER_PARAMS)


def parse_page(params: Mapping[str, str], *, strict: bool = False) -> int:
    raw = params.get("page")
    if raw is None or raw == "":
        return 1
    raw = raw.strip()
    if raw.isdigit() and int(raw) >= 1:
        return int(raw)
    if strict:
        raise FilterParseError("page must be a positive integer")
    return 1


class FilterHelpers:
    """Immutable edits on id lists used by the filter checkboxes."""

    @staticmethod
    def toggle_item(ids, item_id: int, is_checked: bool) -> tuple[int, ...]:
        if is_checked:
            return FilterHelpers.add_item(ids, item_id)
        return FilterHelpers.remove_item(ids, item_id)

    @staticmethod
    def add_item(ids, item_id: int) -> tuple[int, ...]:
        current = tuple(ids or ())
        return current if item_id in current else current + (item_id,)

    @staticmethod
    def remove_item(ids, item_id: int) -> tuple[int, ...]:
        return tuple(i for i in (ids or ()) if i != item_id)

    @staticmethod
    def is_item_selected(ids, item_id: int) -> bool:
        return item_id in (ids or ())

    @staticmethod
    def reset_filters(filters: FilterOptions) -> FilterOptions:
        """Drop every filter but keep the chosen sort."""
        return FilterOptions(sort_by=filters.sort_by or DEFAULT_SORT)
