"""
Route definitions for the catalogue API.

Endpoints under /api/products:
- GET    /                : list products with search, filters, sorting and pagination
- GET    /{productId}     : get one product
- POST   /                : create a product (admin)
- PUT    /{productId}     : partially update a product (admin)
- DELETE /{productId}     : delete a product (admin)

Responses only ever contain ``PublicProduct`` fields.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, Response

from ..auth import require_admin
from ..cache import ResponseCache
from ..dependencies import get_cache, get_catalog
from ..errors import NotFound, ValidationFailed
from ..logger import get_logger
from ..models import Principal
from ..validation import PRODUCT_ID_PATTERN, is_safe_input
from .query import DEFAULT_LIMIT, MAX_LIMIT, SortField, SortOrder, query_products
from .schemas import (
    MessageResponse,
    PaginatedProducts,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    PublicProduct,
)
from .store import CatalogStore

logger = get_logger("catalog.router")

router = APIRouter(prefix="/api/products", tags=["products"])

# Query parameters that used to unlock internal fields; now always refused.
FORBIDDEN_PARAMS = ("admin", "internal")


def _clean_text(value: Optional[str], field: str) -> Optional[str]:
    if value is None:
        return None
    if not is_safe_input(value):
        raise ValidationFailed(f"Invalid {field}")
    return value.strip() or None


def _cache_key(generation: int, request: Request) -> str:
    # A page computed from an older index lands under a key no reader asks for again
    return f"{generation}:{request.url}"


def _reject_internal_params(request: Request) -> None:
    for name in FORBIDDEN_PARAMS:
        if name in request.query_params:
            raise ValidationFailed("Unauthorized parameter")


@router.get("", response_model=PaginatedProducts)
def list_products(
    request: Request,
    response: Response,
    search: Optional[str] = Query(default=None, max_length=200, description="Free-text search"),
    category: Optional[str] = Query(default=None, max_length=50, description="Exact category"),
    brand: Optional[str] = Query(default=None, max_length=100, description="Exact brand"),
    sort_by: SortField = Query(default="name", alias="sortBy"),
    sort_order: SortOrder = Query(default="asc", alias="sortOrder"),
    page: int = Query(default=1, ge=1, le=10000, description="1-indexed page"),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Page size"),
    catalog: CatalogStore = Depends(get_catalog),
    cache: ResponseCache = Depends(get_cache),
) -> PaginatedProducts:
    """Return a page of public products matching the filters."""
    _reject_internal_params(request)

    generation, index = catalog.snapshot()
    key = _cache_key(generation, request)
    cached = cache.get(key)
    if cached is None:
        result = query_products(
            index,
            term=_clean_text(search, "search query"),
            category=_clean_text(category, "category"),
            brand=_clean_text(brand, "brand"),
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
        cached = PaginatedProducts(
            items=result.items,
            page=page,
            limit=limit,
            total_items=result.total_items,
            total_pages=result.total_pages,
        )
        cache.set(key, cached)

    response.headers["X-Total-Count"] = str(cached.total_items)
    return cached


@router.get("/{product_id}", response_model=PublicProduct)
def get_product(
    request: Request,
    product_id: str = Path(..., max_length=50, pattern=PRODUCT_ID_PATTERN),
    catalog: CatalogStore = Depends(get_catalog),
    cache: ResponseCache = Depends(get_cache),
) -> PublicProduct:
    _reject_internal_params(request)

    generation, index = catalog.snapshot()
    key = _cache_key(generation, request)
    cached = cache.get(key)
    if cached is None:
        product = index.product_map.get(product_id)
        if product is None:
            raise NotFound("Product not found")
        cached = product.to_public()
        cache.set(key, cached)
    return cached


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(
    payload: ProductCreate,
    user: Principal = Depends(require_admin),
    catalog: CatalogStore = Depends(get_catalog),
) -> ProductResponse:
    product = catalog.create(payload.model_dump(exclude_none=True))
    logger.info("Product %s created by user %s", product.id, user.id)
    return ProductResponse(message="Product created successfully", product=product.to_public())


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    payload: ProductUpdate,
    product_id: str = Path(..., max_length=50, pattern=PRODUCT_ID_PATTERN),
    user: Principal = Depends(require_admin),
    catalog: CatalogStore = Depends(get_catalog),
) -> ProductResponse:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    product = catalog.update(product_id, changes)
    logger.info("Product %s updated by user %s", product_id, user.id)
    return ProductResponse(message="Product updated successfully", product=product.to_public())


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: str = Path(..., max_length=50, pattern=PRODUCT_ID_PATTERN),
    user: Principal = Depends(require_admin),
    catalog: CatalogStore = Depends(get_catalog),
) -> MessageResponse:
    catalog.delete(product_id)
    logger.info("Product %s deleted by user %s", product_id, user.id)
    return MessageResponse(message="Product deleted successfully")
