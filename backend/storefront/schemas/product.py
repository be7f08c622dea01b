"""
Storefront Backend — Product Schemas
======================================

What:  Pydantic models for the product API contract.
How:   Built from ORM objects with `from_attributes`; listing keys use the
       camelCase names clients already depend on (currentPage, totalPages...).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from storefront.schemas.common import Envelope


class CategoryRef(BaseModel):
    """Category reference expanded to include its name."""

    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class ProductResponse(BaseModel):
    """Full product record as stored."""

    id: uuid.UUID = Field(description="Product identifier")
    name: str
    title: str
    description: str
    image: str = Field(description="Public URL of the display derivative (≤1024px)")
    thumbnail_image: str = Field(description="Public URL of the 200x200 thumbnail")
    price: float
    quantity: int
    category_id: uuid.UUID
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProductListItem(ProductResponse):
    """Product row in a listing, with the category name joined in."""

    category: Optional[CategoryRef] = None


class ProductEnvelope(Envelope):
    product: ProductResponse


class ProductListResponse(Envelope):
    """
    What:  Page of products plus pagination state.

    Invariants:
        total_pages == ceil(total_products / products_per_page)
        len(products) <= products_per_page
    """
    current_page: int = Field(alias="currentPage")
    total_pages: int = Field(alias="totalPages")
    total_products: int = Field(alias="totalProducts")
    products_per_page: int = Field(alias="productsPerPage")
    products: List[ProductListItem]
