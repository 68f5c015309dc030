"""
Route definitions for the cart API.

Every endpoint requires a signed-in user and only ever touches that
user's own cart.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from ..auth import get_current_user
from ..dependencies import get_carts
from ..models import Principal
from ..validation import PRODUCT_ID_PATTERN
from .schemas import AddItemRequest, CartMetadata, CartMutationResponse, CartResponse, SetItemRequest
from .service import CartService

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartResponse)
def get_cart(
    response: Response,
    user: Principal = Depends(get_current_user),
    carts: CartService = Depends(get_carts),
) -> CartResponse:
    cart = carts.get_cart(user.id)
    response.headers["X-Cart-Items"] = str(cart.item_count)
    return CartResponse(
        cart=cart,
        metadata=CartMetadata(last_updated=carts.last_updated(user.id), item_count=cart.item_count),
    )


@router.post("", response_model=CartMutationResponse)
def add_item(
    payload: AddItemRequest,
    user: Principal = Depends(get_current_user),
    carts: CartService = Depends(get_carts),
) -> CartMutationResponse:
    cart, item = carts.add_item(user.id, payload.product_id, payload.quantity)
    return CartMutationResponse(message="Item added to cart", cart=cart, item=item)


@router.put("", response_model=CartMutationResponse)
def set_item(
    payload: SetItemRequest,
    user: Principal = Depends(get_current_user),
    carts: CartService = Depends(get_carts),
) -> CartMutationResponse:
    cart, item = carts.set_item(user.id, payload.product_id, payload.quantity)
    message = "Cart item updated" if item is not None else "Item removed from cart"
    return CartMutationResponse(message=message, cart=cart, item=item)


@router.delete("", response_model=CartMutationResponse)
def remove_item(
    product_id: str = Query(..., alias="productId", max_length=50, pattern=PRODUCT_ID_PATTERN),
    user: Principal = Depends(get_current_user),
    carts: CartService = Depends(get_carts),
) -> CartMutationResponse:
    cart, removed = carts.remove_item(user.id, product_id)
    return CartMutationResponse(message="Item removed from cart", cart=cart, item=removed)
