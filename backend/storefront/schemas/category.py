"""
Storefront Backend — Category Schemas
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel, Field

from storefront.schemas.common import Envelope


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class CategoryListResponse(Envelope):
    """Page of categories. `count` is the number of items on this page."""

    count: int
    total_categories: int = Field(alias="totalCategories")
    total_pages: int = Field(alias="totalPages")
    current_page: int = Field(alias="currentPage")
    categories: List[CategoryResponse]
