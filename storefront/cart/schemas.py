"""Cart models: the stored cart, its public snapshot and request payloads."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..models import CamelModel
from ..validation import PRODUCT_ID_PATTERN


class CartItem(CamelModel):
    product_id: str
    quantity: int
    added_at: datetime
    updated_at: Optional[datetime] = None


class Cart(CamelModel):
    """One user's cart.

    ``total`` is a cached value; ``stale`` marks it out of date with
    respect to ``items`` and is cleared when the total is recomputed.
    """

    items: List[CartItem] = Field(default_factory=list)
    total: float = 0.0
    stale: bool = False


class CartView(CamelModel):
    """Snapshot of a cart as returned to its owner."""

    items: List[CartItem]
    total: float
    item_count: int


class CartMetadata(CamelModel):
    last_updated: datetime
    item_count: int


class CartResponse(CamelModel):
    cart: CartView
    metadata: CartMetadata


class CartMutationResponse(CamelModel):
    message: str
    cart: CartView
    item: Optional[CartItem] = None


class AddItemRequest(CamelModel):
    product_id: str = Field(..., min_length=1, max_length=50, pattern=PRODUCT_ID_PATTERN)
    quantity: int = Field(default=1, ge=1, le=100)


class SetItemRequest(CamelModel):
    product_id: str = Field(..., min_length=1, max_length=50, pattern=PRODUCT_ID_PATTERN)
    quantity: int = Field(..., ge=0, le=100)
