"""
Pydantic schema definitions for the catalog module.

``ProductRecord`` is the stored form of a product and carries the
restricted business fields (cost price, supplier, internal notes, the
admin-only flag). It never leaves the service: every response goes
through ``PublicProduct``, which has no slot for those fields. The
request models validate and sanitize client payloads before they reach
the store. JSON field names are camelCase to match the public API.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from ..models import CamelModel
from ..validation import ensure_safe


class PublicProduct(CamelModel):
    """The product fields any caller may see."""

    id: str
    name: str
    description: str
    price: float
    category: str
    brand: str = ""
    stock: int = 0
    rating: float = 0.0
    tags: List[str] = Field(default_factory=list)
    created_at: datetime


class ProductRecord(PublicProduct):
    """A stored product, including the restricted fields.

    Records are frozen: the store replaces a record on update instead of
    mutating it, so an index snapshot built earlier keeps seeing the
    values it was built from.
    """

    model_config = ConfigDict(frozen=True)

    cost_price: float = 0.0
    supplier: str = "Unknown"
    internal_notes: str = ""
    admin_only: bool = False

    def to_public(self) -> PublicProduct:
        return PublicProduct(
            id=self.id,
            name=self.name,
            description=self.description,
            price=self.price,
            category=self.category,
            brand=self.brand,
            stock=self.stock,
            rating=self.rating,
            tags=list(self.tags),
            created_at=self.created_at,
        )


class _ProductFields(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    brand: Optional[str] = Field(default=None, max_length=100)
    stock: Optional[int] = Field(default=None, ge=0)
    tags: Optional[List[str]] = Field(default=None, max_length=10)
    cost_price: Optional[float] = Field(default=None, ge=0)
    supplier: Optional[str] = Field(default=None, max_length=100)
    internal_notes: Optional[str] = Field(default=None, max_length=500)
    admin_only: Optional[bool] = None

    @field_validator("name", "description", "category", "brand", "supplier", "internal_notes",
                     check_fields=False)
    @classmethod
    def _safe_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return ensure_safe(value)

    @field_validator("tags")
    @classmethod
    def _safe_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        cleaned = []
        for tag in value:
            tag = tag.strip()
            if len(tag) > 50:
                raise ValueError("tags must be at most 50 characters")
            cleaned.append(ensure_safe(tag))
        return cleaned


class ProductCreate(_ProductFields):
    """Payload for ``POST /api/products``."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=1000)
    price: float = Field(..., ge=0.01, le=1_000_000)
    category: str = Field(..., min_length=1, max_length=50)


class ProductUpdate(_ProductFields):
    """Payload for ``PUT /api/products/{productId}``.

    Unknown keys are ignored; ``id`` and ``createdAt`` are rejected since
    a client sending them is trying to rewrite immutable fields.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    price: Optional[float] = Field(default=None, ge=0.01, le=1_000_000)
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)

    @model_validator(mode="before")
    @classmethod
    def _immutable_fields(cls, data):
        if isinstance(data, dict):
            if "id" in data:
                raise ValueError("Cannot update product ID")
            if "createdAt" in data or "created_at" in data:
                raise ValueError("Cannot update creation date")
        return data


class ProductResponse(CamelModel):
    message: str
    product: PublicProduct


class MessageResponse(CamelModel):
    message: str


class PaginatedProducts(CamelModel):
    """A page of products plus pagination metadata."""

    items: List[PublicProduct]
    page: int
    limit: int
    total_items: int
    total_pages: int
