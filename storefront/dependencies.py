"""FastAPI dependencies resolving the objects owned by the application."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from .cache import ResponseCache
    from .cart.service import CartService
    from .catalog.store import CatalogStore


def get_catalog(request: Request) -> "CatalogStore":
    return request.app.state.catalog


def get_carts(request: Request) -> "CartService":
    return request.app.state.carts


def get_cache(request: Request) -> "ResponseCache":
    return request.app.state.cache
