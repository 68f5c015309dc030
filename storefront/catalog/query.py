"""
Search, filtering, sorting and pagination over a ``SearchIndex``.

Every function here reads a single snapshot passed in by the caller and
never looks at the store, so one request always works against one
consistent version of the catalog.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, List, Optional, Set

from typing_extensions import Literal

from ..errors import PageOutOfRange, ValidationFailed
from .index import SearchIndex, tokenize
from .schemas import ProductRecord, PublicProduct

SortField = Literal["name", "price", "rating", "createdAt", "stock"]
SortOrder = Literal["asc", "desc"]

DEFAULT_LIMIT = 20
MAX_LIMIT = 100

_SORT_KEYS: Dict[str, Callable[[ProductRecord], object]] = {
    "name": lambda p: p.name,
    "price": lambda p: p.price,
    "rating": lambda p: p.rating,
    "createdAt": lambda p: p.created_at,
    "stock": lambda p: p.stock,
}


@dataclass
class QueryResult:
    items: List[PublicProduct]
    total_items: int
    total_pages: int


def _matching_keys(index: SearchIndex, word: str) -> Set[str]:
    # Partial match: any indexed token containing ``word`` counts, so the
    # whole vocabulary is scanned for each query word.
    matches: Set[str] = set()
    for token, ids in index.inverted_index.items():
        if word in token:
            matches.update(ids)
    return matches


def search(index: SearchIndex, term: Optional[str]) -> FrozenSet[str]:
    """Return the ids of products matching every word of ``term``.

    Parameters
    ----------
    index : SearchIndex
        The snapshot to search.
    term : Optional[str]
        Free-text query. Words of two characters or fewer are ignored;
        when nothing is left every product matches.

    Returns
    -------
    FrozenSet[str]
        Ids whose indexed tokens contain each query word (AND semantics).
    """
    words = tokenize(term or "")
    if not words:
        return index.all_ids

    result: Optional[Set[str]] = None
    for word in words:
        matches = _matching_keys(index, word)
        result = matches if result is None else result & matches
        if not result:
            break
    return frozenset(result or ())


def category_filter(index: SearchIndex, category: str) -> FrozenSet[str]:
    return index.category_index.get(category, frozenset())


def brand_filter(index: SearchIndex, brand: str) -> FrozenSet[str]:
    return index.brand_index.get(brand, frozenset())


def sort_products(
    products: List[ProductRecord], sort_by: str = "name", sort_order: str = "asc"
) -> List[ProductRecord]:
    """Stable sort; products with equal keys keep their relative order."""
    key = _SORT_KEYS.get(sort_by)
    if key is None:
        raise ValidationFailed("Invalid sort field")
    if sort_order not in ("asc", "desc"):
        raise ValidationFailed("Sort order must be asc or desc")
    return sorted(products, key=key, reverse=sort_order == "desc")


def query_products(
    index: SearchIndex,
    term: Optional[str] = None,
    category: Optional[str] = None,
    brand: Optional[str] = None,
    sort_by: str = "name",
    sort_order: str = "asc",
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
) -> QueryResult:
    """Run the full listing pipeline: filter, materialize, sort, paginate.

    Raises
    ------
    PageOutOfRange
        When ``page`` starts past the last matching product.
    ValidationFailed
        When the page window or sort spec is malformed.
    """
    if page < 1:
        raise ValidationFailed("Page must be a positive integer")
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationFailed(f"Limit must be between 1 and {MAX_LIMIT}")

    candidates: Optional[FrozenSet[str]] = None
    if term:
        candidates = search(index, term)
    if category:
        matched = category_filter(index, category)
        candidates = matched if candidates is None else candidates & matched
    if brand:
        matched = brand_filter(index, brand)
        candidates = matched if candidates is None else candidates & matched

    if candidates is None:
        products = list(index.product_map.values())
    else:
        products = index.ordered(candidates)

    products = sort_products(products, sort_by, sort_order)

    total_items = len(products)
    start = (page - 1) * limit
    if start >= total_items and total_items > 0:
        raise PageOutOfRange()

    page_items = products[start:start + limit]
    return QueryResult(
        items=[p.to_public() for p in page_items],
        total_items=total_items,
        total_pages=math.ceil(total_items / limit),
    )

