"""
Storefront Backend — Product Service (Business Logic Orchestrator)
====================================================================

What:  Create, update, delete, fetch and list products.
Why:   Keeps the request lifecycle out of the route handlers:

           Received → Authenticated → Uploaded → Validated
                    → MediaProcessed → Persisted → Responded

       Authentication and upload intake happen in the route (dependencies);
       everything from validation onward happens here. Any step may raise,
       which short-circuits the remaining steps.
How:   Stateless; receives the db session and the image pipeline per call.

Media vs persistence:
    There is no transaction spanning the asset store and the database.
    A new pair is uploaded before the row is written; if the write fails the
    new pair is discarded best-effort. Old pairs are discarded only after the
    replacing row is committed (update) or before the row is removed (delete).
"""

import logging
import uuid
from typing import Mapping, Optional

from sqlalchemy import asc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from storefront.exceptions import DatabaseError, MissingImageError, NotFoundError
from storefront.models.product import Product
from storefront.schemas.product import (
    ProductListItem,
    ProductListResponse,
    ProductResponse,
)
from storefront.services.image_service import ImagePair, ImagePipeline
from storefront.services.pagination import PageRequest, page_count, resolve_order
from storefront.services.upload_service import UploadedImage
from storefront.services.validation import (
    PRODUCT_CREATE_RULES,
    PRODUCT_UPDATE_RULES,
    parse_uuid,
    require_identifier,
    validate_fields,
)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("name", "title", "description")

SORTABLE_COLUMNS = {
    "createdAt": Product.created_at,
    "created_at": Product.created_at,
    "name": Product.name,
    "title": Product.title,
    "price": Product.price,
    "quantity": Product.quantity,
}
DEFAULT_SORT_FIELD = "createdAt"


class ProductService:
    """
    Business logic layer for product operations.

    Error Handling Strategy:
        Application exceptions propagate unchanged. SQLAlchemy errors are
        wrapped in DatabaseError so no SQL detail reaches the client.
    """

    async def create_product(
        self,
        db: AsyncSession,
        pipeline: ImagePipeline,
        fields: Mapping[str, Optional[str]],
        upload: Optional[UploadedImage],
    ) -> ProductResponse:
        """
        Validate, upload the image pair, persist.

        Raises:
            ValidationFailedError, MissingImageError, UnsupportedImageFormatError,
            AssetUploadFailedError, DatabaseError
        """
        await validate_fields(fields, PRODUCT_CREATE_RULES, db)
        if upload is None:
            raise MissingImageError()

        pair = await pipeline.process(upload)

        product = Product(
            name=fields["name"],
            title=fields["title"],
            description=fields["description"],
            image=pair.image_url,
            thumbnail_image=pair.thumbnail_url,
            price=float(fields["price"]),
            quantity=int(float(fields["quantity"])),
            category_id=parse_uuid(fields["category_id"]),
        )
        await self._persist(db, pipeline, product, fresh_pair=pair, action="create")
        logger.info("Product created: %s (category=%s)", product.id, product.category_id)
        return ProductResponse.model_validate(product)

    async def update_product(
        self,
        db: AsyncSession,
        pipeline: ImagePipeline,
        product_id: str,
        fields: Mapping[str, Optional[str]],
        upload: Optional[UploadedImage],
    ) -> ProductResponse:
        """
        Apply only the supplied fields; a new upload replaces both URLs.

        Raises:
            ValidationFailedError, NotFoundError, UnsupportedImageFormatError,
            AssetUploadFailedError, DatabaseError
        """
        pid = require_identifier(product_id)
        await validate_fields(fields, PRODUCT_UPDATE_RULES, db)
        product = await self._get_or_404(db, pid)

        for name in TEXT_FIELDS:
            if fields.get(name) is not None:
                setattr(product, name, fields[name])
        if fields.get("category_id") is not None:
            product.category_id = parse_uuid(fields["category_id"])
        if fields.get("price") is not None:
            product.price = float(fields["price"])
        if fields.get("quantity") is not None:
            product.quantity = int(float(fields["quantity"]))

        pair: Optional[ImagePair] = None
        previous = (product.image, product.thumbnail_image)
        if upload is not None:
            pair = await pipeline.process(upload)
            product.image, product.thumbnail_image = pair.urls

        await self._persist(db, pipeline, product, fresh_pair=pair, action="update")

        if pair is not None:
            await pipeline.discard(previous)
        logger.info("Product updated: %s (new image=%s)", product.id, pair is not None)
        return ProductResponse.model_validate(product)

    async def delete_product(
        self,
        db: AsyncSession,
        pipeline: ImagePipeline,
        product_id: str,
    ) -> None:
        pid = require_identifier(product_id)
        product = await self._get_or_404(db, pid)

        await pipeline.discard((product.image, product.thumbnail_image))

        try:
            await db.delete(product)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting product %s: %s", pid, str(e))
            raise DatabaseError(
                message="Error deleting product",
                context={"product_id": str(pid), "error_type": type(e).__name__},
            )
        logger.info("Product deleted: %s", pid)

    async def get_product(self, db: AsyncSession, product_id: str) -> ProductResponse:
        pid = require_identifier(product_id)
        product = await self._get_or_404(db, pid)
        return ProductResponse.model_validate(product)

    async def list_products(
        self,
        db: AsyncSession,
        page_request: PageRequest,
        name: Optional[str] = None,
        category: Optional[str] = None,
    ) -> ProductListResponse:
        """
        Page through products with optional filters.

        Filters:
            name:     case-insensitive substring match (LIKE wildcards escaped)
            category: exact category id

        Query plan:
            SELECT count(id) FROM products WHERE ...
            SELECT ... FROM products JOIN categories ... ORDER BY <sort>, id
            LIMIT :per_page OFFSET :offset
        """
        order = resolve_order(page_request, SORTABLE_COLUMNS, DEFAULT_SORT_FIELD)

        filters = []
        if name:
            filters.append(Product.name.icontains(name, autoescape=True))
        if category:
            filters.append(
                Product.category_id
                == require_identifier(category, field="category", message="Invalid category ID")
            )

        try:
            count_result = await db.execute(select(func.count(Product.id)).where(*filters))
            total = count_result.scalar() or 0

            # id as tie-breaker keeps page boundaries stable across requests
            query = (
                select(Product)
                .options(joinedload(Product.category))
                .where(*filters)
                .order_by(order, asc(Product.id))
                .offset(page_request.offset)
                .limit(page_request.per_page)
            )
            result = await db.execute(query)
            products = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing products: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Error fetching products",
                context={"error_type": type(e).__name__},
            )

        return ProductListResponse(
            message="Products fetched successfully",
            current_page=page_request.page,
            total_pages=page_count(total, page_request.per_page),
            total_products=total,
            products_per_page=page_request.per_page,
            products=[ProductListItem.model_validate(p) for p in products],
        )

    async def _get_or_404(self, db: AsyncSession, product_id: uuid.UUID) -> Product:
        try:
            product = await db.get(Product, product_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching product %s: %s", product_id, str(e))
            raise DatabaseError(
                message="Error fetching product",
                context={"product_id": str(product_id)},
            )
        if product is None:
            raise NotFoundError(resource="Product", resource_id=str(product_id))
        return product

    async def _persist(
        self,
        db: AsyncSession,
        pipeline: ImagePipeline,
        product: Product,
        fresh_pair: Optional[ImagePair],
        action: str,
    ) -> None:
        """
        Write the row and commit it.

        The commit happens here, not in the session dependency teardown, so
        the row is durable before any previously stored images are discarded.
        """
        try:
            db.add(product)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error on product %s: %s", action, str(e), exc_info=True)
            if fresh_pair is not None:
                # No row references the new pair
                await pipeline.discard(fresh_pair.urls)
            raise DatabaseError(
                message=f"Error processing {action}",
                context={"error_type": type(e).__name__},
            )


product_service = ProductService()
