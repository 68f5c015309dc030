"""
In-memory product store for the catalogue API.

``CatalogStore`` owns the authoritative list of products and the
current ``SearchIndex`` snapshot derived from it. Every mutation runs
under one lock together with the index rebuild, and the new snapshot is
published with a single assignment once it is complete. Readers grab
``store.index`` (or ``store.snapshot()``) once and work on that snapshot
for the whole request.

The store is created by the application factory and handed to request
handlers through a dependency; nothing here is module-global.
"""

from __future__ import annotations

import random
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from ..errors import NotFound, ValidationFailed
from ..logger import get_logger
from ..validation import check_product_id
from .index import SearchIndex, build_index
from .schemas import ProductRecord

logger = get_logger("catalog.store")

# Fields a partial update may overwrite; ``id`` and ``created_at`` are immutable.
UPDATABLE_FIELDS = frozenset({
    "name",
    "description",
    "price",
    "category",
    "brand",
    "stock",
    "tags",
    "cost_price",
    "supplier",
    "internal_notes",
    "admin_only",
})

COST_PRICE_RATIO = 0.7
DEFAULT_SUPPLIER = "Unknown"

SEED_CATEGORIES = ["Electronics", "Clothing", "Books", "Home", "Sports", "Beauty"]
SEED_BRANDS = ["BrandA", "BrandB", "BrandC", "BrandD", "BrandE"]


def next_product_id(existing_ids: Iterable[str]) -> str:
    """Return one more than the highest numeric id; non-numeric ids are ignored."""
    numeric = [int(pid) for pid in existing_ids if pid.isdecimal()]
    return str(max(numeric) + 1) if numeric else "1"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CatalogStore:
    """Authoritative product collection plus its derived search index."""

    def __init__(self, products: Optional[Iterable[ProductRecord]] = None):
        self._lock = threading.Lock()
        self._products: List[ProductRecord] = list(products or [])
        self._index: SearchIndex = build_index(self._products)
        self._generation = 0
        self._listeners: List[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    @property
    def index(self) -> SearchIndex:
        """The current, fully built index snapshot."""
        return self._index

    def snapshot(self) -> Tuple[int, SearchIndex]:
        """Return the current index together with its generation number.

        The generation goes up by one on every mutation, so it identifies
        the snapshot a response was computed from.
        """
        # Generation first: _commit publishes the index before bumping it,
        # so a reader may get an older number with a newer index, never the reverse.
        generation = self._generation
        return generation, self._index

    def list(self) -> List[ProductRecord]:
        return list(self._index.product_map.values())

    def get(self, product_id: str) -> ProductRecord:
        check_product_id(product_id)
        product = self._index.product_map.get(product_id)
        if product is None:
            raise NotFound("Product not found")
        return product

    def price_of(self, product_id: str) -> Optional[float]:
        product = self._index.product_map.get(product_id)
        return product.price if product is not None else None

    def __len__(self) -> int:
        return len(self._index.product_map)

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------
    def add_listener(self, callback: Callable[[], None]) -> None:
        """Register ``callback`` to run after every successful mutation."""
        self._listeners.append(callback)

    def create(self, fields: Dict[str, Any]) -> ProductRecord:
        """Create a product from validated ``fields`` and return it.

        Parameters
        ----------
        fields : Dict[str, Any]
            Snake-case product fields. ``name``, ``description``,
            ``price`` and ``category`` are required; the rest fall back
            to their defaults (``cost_price`` to 70% of ``price``).

        Returns
        -------
        ProductRecord
            The stored record with its assigned id and creation time.
        """
        with self._lock:
            data = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
            data["id"] = next_product_id(p.id for p in self._products)
            data["created_at"] = _now()
            data["rating"] = 0.0
            if "price" in data:
                data.setdefault("cost_price", round(data["price"] * COST_PRICE_RATIO, 2))
            data.setdefault("supplier", DEFAULT_SUPPLIER)

            product = self._validate(data)
            self._commit(self._products + [product])

        logger.info("Created product %s (%s)", product.id, product.name)
        self._notify()
        return product

    def update(self, product_id: str, fields: Dict[str, Any]) -> ProductRecord:
        """Apply the allowed subset of ``fields`` to a product.

        Fields outside ``UPDATABLE_FIELDS`` are dropped without error.

        Raises
        ------
        NotFound
            When no product has ``product_id``.
        """
        check_product_id(product_id)
        with self._lock:
            position = self._position(product_id)
            current = self._products[position]
            changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
            updated = self._validate({**current.model_dump(), **changes})

            products = list(self._products)
            products[position] = updated
            self._commit(products)

        logger.info("Updated product %s (fields: %s)", product_id, ", ".join(sorted(changes)) or "-")
        self._notify()
        return updated

    def delete(self, product_id: str) -> None:
        check_product_id(product_id)
        with self._lock:
            position = self._position(product_id)
            products = self._products[:position] + self._products[position + 1:]
            self._commit(products)

        logger.info("Deleted product %s", product_id)
        self._notify()

    def seed(self, count: int, rng: Optional[random.Random] = None) -> None:
        """Fill the store with ``count`` generated demo products."""
        rng = rng or random.Random()
        created = _now()
        with self._lock:
            start = int(next_product_id(p.id for p in self._products))
            generated = []
            for i in range(start, start + count):
                price = float(rng.randint(10, 1009))
                generated.append(ProductRecord(
                    id=str(i),
                    name=f"Product {i}",
                    description=f"This is product number {i} with amazing features",
                    price=price,
                    category=rng.choice(SEED_CATEGORIES),
                    brand=rng.choice(SEED_BRANDS),
                    stock=rng.randint(0, 99),
                    rating=round(rng.uniform(0, 5), 1),
                    tags=[f"tag{i}", f"feature{i % 10}"],
                    created_at=created,
                    cost_price=float(rng.randint(5, 504)),
                    supplier=f"Supplier {i % 20}",
                    internal_notes=f"Internal notes for product {i}",
                    admin_only=rng.random() > 0.9,
                ))
            self._commit(self._products + generated)

        logger.info("Seeded catalog with %d products", count)
        self._notify()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _position(self, product_id: str) -> int:
        position = self._index.positions.get(product_id)
        if position is None:
            raise NotFound("Product not found")
        return position

    @staticmethod
    def _validate(data: Dict[str, Any]) -> ProductRecord:
        try:
            return ProductRecord.model_validate(data)
        except ValidationError as exc:
            raise ValidationFailed(f"Invalid product data: {exc.error_count()} error(s)") from exc

    def _commit(self, products: List[ProductRecord]) -> None:
        # Build first; if this raises, neither the list nor the index changes.
        index = build_index(products)
        self._products = products
        self._index = index
        self._generation += 1

    def _notify(self) -> None:
        for callback in self._listeners:
            callback()
