"""
Storefront Backend — Category Service
=======================================

What:  Paginated, sortable, name-filtered category listing.
Why:   Categories are managed outside this service; the API only lists them
       so clients can pick a `category_id` for a product.
"""

import logging
from typing import Optional

from sqlalchemy import asc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.exceptions import DatabaseError
from storefront.models.category import Category
from storefront.schemas.category import CategoryListResponse, CategoryResponse
from storefront.services.pagination import PageRequest, page_count, resolve_order

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = {
    "name": Category.name,
    "description": Category.description,
    "createdAt": Category.created_at,
    "created_at": Category.created_at,
}
DEFAULT_SORT_FIELD = "name"


class CategoryService:
    """
    Business logic layer for category reads.

    Error Handling Strategy:
        An unknown sort field raises ValidationFailedError before any query.
        SQLAlchemy errors are wrapped in DatabaseError.
    """

    async def list_categories(
        self,
        db: AsyncSession,
        page_request: PageRequest,
        name: Optional[str] = None,
    ) -> CategoryListResponse:
        """
        Page through categories, optionally filtered by name.

        Filters:
            name: case-insensitive substring match (LIKE wildcards escaped)

        Sorting:
            name (default), description, createdAt; id breaks ties

        Returns:
            CategoryListResponse, where `count` is the size of this page and
            `totalCategories` the size of the filtered set
        """
        order = resolve_order(page_request, SORTABLE_COLUMNS, DEFAULT_SORT_FIELD)
        filters = [Category.name.icontains(name, autoescape=True)] if name else []

        try:
            count_result = await db.execute(select(func.count(Category.id)).where(*filters))
            total = count_result.scalar() or 0

            result = await db.execute(
                select(Category)
                .where(*filters)
                .order_by(order, asc(Category.id))
                .offset(page_request.offset)
                .limit(page_request.per_page)
            )
            categories = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing categories: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Error fetching categories",
                context={"error_type": type(e).__name__},
            )

        return CategoryListResponse(
            message="Categories fetched successfully",
            count=len(categories),
            total_categories=total,
            total_pages=page_count(total, page_request.per_page),
            current_page=page_request.page,
            categories=[CategoryResponse.model_validate(c) for c in categories],
        )


category_service = CategoryService()
