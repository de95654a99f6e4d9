"""
Product listing query engine.

Turns untrusted listing parameters (page, limit, filters, sort, search) into
a bounded query against a catalog store and builds the paginated response.

Parsing is permissive: values that cannot be coerced fall back to the
defaults instead of failing the request.
"""
import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Protocol, Sequence

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Offsets past this cannot be bound as a 64-bit integer by the drivers
MAX_OFFSET = 2 ** 62

SORT_OPTIONS = {
    "price_asc": ("price", False),
    "price_desc": ("price", True),
    "name_asc": ("name", False),
    "name_desc": ("name", True),
}


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool


DEFAULT_SORT = SortKey("created_at", True)


@dataclass(frozen=True)
class ProductFilter:
    """
    Conjunctive predicate over the catalog. Inactive products are always
    excluded.
    """
    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    search: Optional[str] = None
    active_only: bool = True

    def search_terms(self) -> List[str]:
        return self.search.split() if self.search else []


@dataclass(frozen=True)
class ListingParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    category: Optional[str] = None
    brand: Optional[str] = None
    search: Optional[str] = None
    sort: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def to_filter(self) -> ProductFilter:
        return ProductFilter(
            category=self.category,
            brand=self.brand,
            min_price=self.min_price,
            max_price=self.max_price,
            search=self.search,
        )


class CatalogStore(Protocol):
    async def find(self, predicate: ProductFilter, sort: SortKey, skip: int, limit: int) -> Sequence[Any]:
        ...

    async def count(self, predicate: ProductFilter) -> int:
        ...


def _positive_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    return number if number >= 1 else default


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    # nan/inf would make the range filter meaningless
    return number if math.isfinite(number) else None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_listing_params(query: Mapping[str, Any], max_limit: int = MAX_LIMIT) -> ListingParams:
    """
    Coerce raw query parameters into ListingParams.

    page and limit must be positive integers (anything else uses the
    default); limit is capped at max_limit. minPrice/maxPrice that are not
    finite numbers are ignored. Empty strings count as absent.
    """
    return ListingParams(
        page=_positive_int(query.get("page"), DEFAULT_PAGE),
        limit=min(_positive_int(query.get("limit"), DEFAULT_LIMIT), max_limit),
        category=_text(query.get("category")),
        brand=_text(query.get("brand")),
        search=_text(query.get("search")),
        sort=_text(query.get("sort")),
        min_price=_number(query.get("minPrice")),
        max_price=_number(query.get("maxPrice")),
    )


def resolve_sort(token: Optional[str]) -> SortKey:
    """Map a sort token to a SortKey. Unknown or missing tokens sort newest first."""
    option = SORT_OPTIONS.get(token) if token else None
    if option is None:
        return DEFAULT_SORT
    return SortKey(*option)


@dataclass
class ListingPage:
    data: List[Any]
    total: int
    page: int
    pages: int

    def to_dict(self, serialize=None) -> dict:
        items = [serialize(item) for item in self.data] if serialize else list(self.data)
        return {
            "success": True,
            "data": items,
            "pagination": {
                "total": self.total,
                "page": self.page,
                "pages": self.pages,
            },
        }


class ProductQueryEngine:
    """
    Runs a listing against a catalog store.

    The page slice and the total count are two separate reads; under
    concurrent writes the total may not match the slice exactly.
    """

    def __init__(self, store: CatalogStore):
        self.store = store

    async def list(self, params: ListingParams) -> ListingPage:
        predicate = params.to_filter()
        sort = resolve_sort(params.sort)

        if params.skip > MAX_OFFSET:
            # Far past the last page; nothing to fetch
            items = []
        else:
            items = await self.store.find(predicate, sort, params.skip, params.limit)
        total = await self.store.count(predicate)

        return ListingPage(
            data=list(items)[:params.limit],
            total=total,
            page=params.page,
            pages=math.ceil(total / params.limit),
        )
