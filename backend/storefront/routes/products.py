"""
Storefront Backend — Product Route Handlers
=============================================

What:  HTTP surface for product CRUD and listing.
How:   Routes stay thin: the token guard and upload intake run here (as
       dependencies / a single read), everything else is ProductService.

Route Inventory:
    POST   /api/product/add    bearer   multipart create
    GET    /api/products       public   paginated listing
    PUT    /api/product/{id}   bearer   multipart partial update
    DELETE /api/product/{id}   bearer   delete with remote image cleanup
    GET    /api/product/{id}   public   single product

Token check before body intake:
    FastAPI reads the multipart body before route dependencies run, so
    BearerHeaderGuardMiddleware rejects POST/PUT/DELETE under /api/product/
    without a valid token first. `require_identity` on the routes below
    still resolves the identity the handler receives.

Why text fields are typed `Optional[str]`:
    Presence, numeric and range rules live in the validation layer so every
    field error comes back in one `errors` map instead of FastAPI's 422 list.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import settings
from storefront.database import get_db_session
from storefront.schemas.common import Envelope, ErrorResponse
from storefront.schemas.product import ProductEnvelope, ProductListResponse
from storefront.security import TokenIdentity, require_identity
from storefront.services.image_service import ImagePipeline, get_image_pipeline
from storefront.services.pagination import PageRequest
from storefront.services.product_service import product_service
from storefront.services.upload_service import upload_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Products"])

ERROR_RESPONSES = {
    400: {"description": "Validation, image or upload-size error", "model": ErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    404: {"description": "Product not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.post(
    "/product/add",
    status_code=201,
    response_model=ProductEnvelope,
    responses=ERROR_RESPONSES,
    summary="Create a product with its image",
    description=(
        "Multipart form with name, title, description, category_id, price, quantity "
        "and a JPEG or PNG `image` (max 2MB). The image is stored as a display "
        "version (≤1024px) and a 200x200 thumbnail."
    ),
)
async def add_product(
    identity: TokenIdentity = Depends(require_identity),
    name: Optional[str] = Form(default=None),
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    category_id: Optional[str] = Form(default=None),
    price: Optional[str] = Form(default=None),
    quantity: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db_session),
    pipeline: ImagePipeline = Depends(get_image_pipeline),
) -> ProductEnvelope:
    upload = await upload_service.read_image(image)
    logger.info("Create product requested by user %s", identity.user_id)

    product = await product_service.create_product(
        db=db,
        pipeline=pipeline,
        fields=dict(
            name=name,
            title=title,
            description=description,
            category_id=category_id,
            price=price,
            quantity=quantity,
        ),
        upload=upload,
    )
    return ProductEnvelope(message="Product added successfully", product=product)


@router.get(
    "/products",
    response_model=ProductListResponse,
    responses={400: ERROR_RESPONSES[400], 500: ERROR_RESPONSES[500]},
    summary="List products",
    description=(
        "Offset pagination (page, perPage), sorting (sortField, sortOrder), a "
        "case-insensitive name filter and an exact category filter. Each product "
        "includes its category name."
    ),
)
async def list_products(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    per_page: int = Query(
        default=settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        alias="perPage",
    ),
    sort_field: Optional[str] = Query(
        default=None,
        alias="sortField",
        description="createdAt (default), name, title, price or quantity",
    ),
    sort_order: str = Query(default="asc", alias="sortOrder", description="asc or desc"),
    name: Optional[str] = Query(default=None, description="Substring match on name"),
    category: Optional[str] = Query(default=None, description="Category id"),
    db: AsyncSession = Depends(get_db_session),
) -> ProductListResponse:
    return await product_service.list_products(
        db=db,
        page_request=PageRequest(
            page=page,
            per_page=per_page,
            sort_field=sort_field or "",
            sort_order=sort_order,
        ),
        name=name,
        category=category,
    )


@router.put(
    "/product/{product_id}",
    response_model=ProductEnvelope,
    responses=ERROR_RESPONSES,
    summary="Update a product",
    description=(
        "All fields optional; only the ones sent are changed. Sending a new "
        "`image` replaces both stored images and deletes the old ones."
    ),
)
async def update_product(
    product_id: str,
    identity: TokenIdentity = Depends(require_identity),
    name: Optional[str] = Form(default=None),
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    category_id: Optional[str] = Form(default=None),
    price: Optional[str] = Form(default=None),
    quantity: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db_session),
    pipeline: ImagePipeline = Depends(get_image_pipeline),
) -> ProductEnvelope:
    upload = await upload_service.read_image(image)
    logger.info("Update of product %s requested by user %s", product_id, identity.user_id)

    product = await product_service.update_product(
        db=db,
        pipeline=pipeline,
        product_id=product_id,
        fields=dict(
            name=name,
            title=title,
            description=description,
            category_id=category_id,
            price=price,
            quantity=quantity,
        ),
        upload=upload,
    )
    return ProductEnvelope(message="Product updated successfully", product=product)


@router.delete(
    "/product/{product_id}",
    response_model=Envelope,
    responses=ERROR_RESPONSES,
    summary="Delete a product and its images",
)
async def delete_product(
    product_id: str,
    identity: TokenIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
    pipeline: ImagePipeline = Depends(get_image_pipeline),
) -> Envelope:
    logger.info("Delete of product %s requested by user %s", product_id, identity.user_id)
    await product_service.delete_product(db=db, pipeline=pipeline, product_id=product_id)
    return Envelope(message="Product deleted successfully")


@router.get(
    "/product/{product_id}",
    response_model=ProductEnvelope,
    responses={k: v for k, v in ERROR_RESPONSES.items() if k != 401},
    summary="Get a single product",
)
async def get_product(
    product_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ProductEnvelope:
    product = await product_service.get_product(db=db, product_id=product_id)
    return ProductEnvelope(message="Product fetched successfully", product=product)
