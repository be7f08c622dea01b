"""
Storefront Backend — Category Route Handlers
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import settings
from storefront.database import get_db_session
from storefront.schemas.category import CategoryListResponse
from storefront.schemas.common import ErrorResponse
from storefront.services.category_service import category_service
from storefront.services.pagination import PageRequest

router = APIRouter(prefix="/api", tags=["Categories"])


@router.get(
    "/categories",
    response_model=CategoryListResponse,
    responses={
        400: {"description": "Invalid query parameters", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List categories",
)
async def list_categories(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(
        default=settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        alias="perPage",
    ),
    sort_field: Optional[str] = Query(default=None, alias="sortField"),
    sort_order: str = Query(default="asc", alias="sortOrder"),
    name: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> CategoryListResponse:
    return await category_service.list_categories(
        db=db,
        page_request=PageRequest(
            page=page,
            per_page=per_page,
            sort_field=sort_field or "",
            sort_order=sort_order,
        ),
        name=name,
    )
