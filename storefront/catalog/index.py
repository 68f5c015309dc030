"""
Search indices derived from the product collection.

``build_index()`` is a pure function of the product list: it returns a
new ``SearchIndex`` every time and never touches a previous one. The
store swaps its reference to the new snapshot in a single assignment,
so a reader holding the old snapshot keeps a complete, consistent view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence

from .schemas import ProductRecord

MIN_TOKEN_LENGTH = 3


def tokenize(text: str) -> List[str]:
    """Lowercase ``text``, split on whitespace and keep tokens longer than two characters."""
    return [word for word in text.lower().split() if len(word) >= MIN_TOKEN_LENGTH]


def product_tokens(product: ProductRecord) -> List[str]:
    return tokenize(f"{product.name} {product.description}")


def _freeze(buckets: Dict[str, set]) -> Mapping[str, FrozenSet[str]]:
    return MappingProxyType({key: frozenset(ids) for key, ids in buckets.items()})


@dataclass(frozen=True)
class SearchIndex:
    """An immutable snapshot of the catalog indices.

    Attributes
    ----------
    inverted_index : Mapping[str, FrozenSet[str]]
        Token -> ids of products whose name or description contains it.
    category_index : Mapping[str, FrozenSet[str]]
        Exact category value -> product ids.
    brand_index : Mapping[str, FrozenSet[str]]
        Exact brand value -> product ids.
    product_map : Mapping[str, ProductRecord]
        Product id -> record, in catalog order.
    positions : Mapping[str, int]
        Product id -> position in the catalog, used to restore catalog
        order after set operations.
    """

    inverted_index: Mapping[str, FrozenSet[str]] = field(default_factory=lambda: MappingProxyType({}))
    category_index: Mapping[str, FrozenSet[str]] = field(default_factory=lambda: MappingProxyType({}))
    brand_index: Mapping[str, FrozenSet[str]] = field(default_factory=lambda: MappingProxyType({}))
    product_map: Mapping[str, ProductRecord] = field(default_factory=lambda: MappingProxyType({}))
    positions: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def all_ids(self) -> FrozenSet[str]:
        return frozenset(self.product_map)

    def ordered(self, ids: Iterable[str]) -> List[ProductRecord]:
        """Materialize ``ids`` into records in catalog order, skipping unknown ids."""
        known = [pid for pid in ids if pid in self.positions]
        known.sort(key=self.positions.__getitem__)
        return [self.product_map[pid] for pid in known]


def build_index(products: Sequence[ProductRecord]) -> SearchIndex:
    """Build a fresh ``SearchIndex`` from the full product list.

    Parameters
    ----------
    products : Sequence[ProductRecord]
        The complete, current catalog in catalog order.

    Returns
    -------
    SearchIndex
        A new snapshot. Building twice from the same list yields equal
        snapshots.
    """
    inverted: Dict[str, set] = {}
    categories: Dict[str, set] = {}
    brands: Dict[str, set] = {}
    product_map: Dict[str, ProductRecord] = {}
    positions: Dict[str, int] = {}

    for position, product in enumerate(products):
        product_map[product.id] = product
        positions[product.id] = position

        for token in product_tokens(product):
            inverted.setdefault(token, set()).add(product.id)

        if product.category:
            categories.setdefault(product.category, set()).add(product.id)
        if product.brand:
            brands.setdefault(product.brand, set()).add(product.id)

    return SearchIndex(
        inverted_index=_freeze(inverted),
        category_index=_freeze(categories),
        brand_index=_freeze(brands),
        product_map=MappingProxyType(product_map),
        positions=MappingProxyType(positions),
    )
