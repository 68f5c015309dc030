"""
Cart line arithmetic.

The functions here mutate a single ``Cart`` and know nothing about
users or locking; ``CartService`` serializes calls per user. Every
mutation marks the cart stale instead of recomputing the total, and
``refresh_total`` recomputes it only when it is stale.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from ..errors import MaxQuantityExceeded, NotFound
from ..validation import MAX_QUANTITY, check_quantity
from .schemas import Cart, CartItem

PriceLookup = Callable[[str], Optional[float]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def compute_total(items: Iterable[CartItem], price_lookup: PriceLookup) -> float:
    """Sum of price x quantity; products without a price count as 0."""
    total = 0.0
    for item in items:
        price = price_lookup(item.product_id) or 0.0
        total += price * item.quantity
    return round(total, 2)


def find_item(cart: Cart, product_id: str) -> Optional[CartItem]:
    return next((item for item in cart.items if item.product_id == product_id), None)


def upsert_item(cart: Cart, product_id: str, quantity: int) -> CartItem:
    """Add ``quantity`` of a product, merging with an existing line.

    Raises ``MaxQuantityExceeded`` (leaving the line untouched) when the
    merged quantity would go over the limit.
    """
    check_quantity(quantity, minimum=1)
    existing = find_item(cart, product_id)
    if existing is not None:
        new_quantity = existing.quantity + quantity
        if new_quantity > MAX_QUANTITY:
            raise MaxQuantityExceeded(f"Maximum quantity limit ({MAX_QUANTITY}) exceeded")
        existing.quantity = new_quantity
        existing.updated_at = _now()
        cart.stale = True
        return existing

    item = CartItem(product_id=product_id, quantity=quantity, added_at=_now())
    cart.items.append(item)
    cart.stale = True
    return item


def set_item(cart: Cart, product_id: str, quantity: int) -> Optional[CartItem]:
    """Overwrite a line's quantity; 0 removes the line and returns ``None``."""
    check_quantity(quantity, minimum=0)
    existing = find_item(cart, product_id)
    if existing is None:
        raise NotFound("Item not found in cart")

    if quantity == 0:
        cart.items.remove(existing)
        cart.stale = True
        return None

    existing.quantity = quantity
    existing.updated_at = _now()
    cart.stale = True
    return existing


def remove_item(cart: Cart, product_id: str) -> CartItem:
    existing = find_item(cart, product_id)
    if existing is None:
        raise NotFound("Item not found in cart")
    cart.items.remove(existing)
    cart.stale = True
    return existing


def refresh_total(cart: Cart, price_lookup: PriceLookup) -> float:
    """Recompute ``cart.total`` if it is stale and return it."""
    if cart.stale:
        cart.total = compute_total(cart.items, price_lookup)
        cart.stale = False
    return cart.total
