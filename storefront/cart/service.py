"""
Per-user carts.

Carts are created lazily on first access and live for the lifetime of
the process. Each user has its own lock, so requests from the same user
are serialized while different users never wait on each other. Prices
are always read from the catalog at the time the total is recomputed.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from ..catalog.store import CatalogStore
from ..errors import InvalidProduct
from ..logger import get_logger
from ..validation import check_product_id
from . import calculator
from .schemas import Cart, CartItem, CartView

logger = get_logger("cart.service")


class CartService:
    def __init__(self, catalog: CatalogStore):
        self._catalog = catalog
        self._carts: Dict[str, Cart] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock

    def _cart_for(self, user_id: str) -> Cart:
        # Caller holds the user's lock
        cart = self._carts.get(user_id)
        if cart is None:
            cart = self._carts[user_id] = Cart()
        return cart

    def _snapshot(self, cart: Cart) -> CartView:
        total = calculator.refresh_total(cart, self._catalog.price_of)
        return CartView(
            items=[item.model_copy() for item in cart.items],
            total=total,
            item_count=len(cart.items),
        )

    def get_cart(self, user_id: str) -> CartView:
        """Return the user's cart, recomputing the total only if it is stale."""
        with self._lock_for(user_id):
            return self._snapshot(self._cart_for(user_id))

    def add_item(self, user_id: str, product_id: str, quantity: int) -> Tuple[CartView, CartItem]:
        check_product_id(product_id)
        if self._catalog.price_of(product_id) is None:
            raise InvalidProduct("Product not found")

        with self._lock_for(user_id):
            cart = self._cart_for(user_id)
            item = calculator.upsert_item(cart, product_id, quantity)
            added = item.model_copy()
            view = self._snapshot(cart)

        logger.debug("User %s added %d x %s", user_id, quantity, product_id)
        return view, added

    def set_item(self, user_id: str, product_id: str, quantity: int) -> Tuple[CartView, Optional[CartItem]]:
        check_product_id(product_id)
        with self._lock_for(user_id):
            cart = self._cart_for(user_id)
            item = calculator.set_item(cart, product_id, quantity)
            updated = item.model_copy() if item is not None else None
            view = self._snapshot(cart)

        logger.debug("User %s set %s to %d", user_id, product_id, quantity)
        return view, updated

    def remove_item(self, user_id: str, product_id: str) -> Tuple[CartView, CartItem]:
        check_product_id(product_id)
        with self._lock_for(user_id):
            cart = self._cart_for(user_id)
            removed = calculator.remove_item(cart, product_id)
            view = self._snapshot(cart)

        logger.debug("User %s removed %s", user_id, product_id)
        return view, removed

    def last_updated(self, user_id: str) -> datetime:
        with self._lock_for(user_id):
            cart = self._carts.get(user_id)
            stamps = [i.updated_at or i.added_at for i in cart.items] if cart else []
        return max(stamps) if stamps else datetime.now(timezone.utc)
