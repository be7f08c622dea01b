"""
Storefront Backend — Product Service Unit Tests
=================================================

What:  Tests for ProductService (create, update, delete, get, list).
How:   Mock DB session and the in-process FakeAssetStore (no real DB or Cloudinary).

What we test:
    ✅ Create: validation before the image check, matched pair persisted
    ✅ Create: DB failure discards the freshly uploaded pair
    ✅ Update: partial fields, image replacement, old pair discarded after commit
    ✅ Delete: remote images removed together with the row
    ✅ Get/Delete/Update on unknown or malformed ids
    ✅ List: pagination math, category join, sort whitelist
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from storefront.exceptions import (
    AssetUploadFailedError,
    DatabaseError,
    MissingImageError,
    NotFoundError,
    ValidationFailedError,
)
from storefront.models.product import Product
from storefront.services.image_service import public_id_from_url
from storefront.services.pagination import PageRequest
from storefront.services.product_service import ProductService
from storefront.services.upload_service import UploadedImage

from conftest import execute_results, make_product, product_form


def _jpeg_upload(content: bytes) -> UploadedImage:
    return UploadedImage(content=content, content_type="image/jpeg", filename="photo.jpg")


class TestCreateProduct:

    def setup_method(self):
        self.service = ProductService()

    @pytest.mark.asyncio
    async def test_create_success(self, mock_db_session, image_pipeline, asset_store, category, jpeg_bytes):
        result = await self.service.create_product(
            db=mock_db_session,
            pipeline=image_pipeline,
            fields=product_form(category.id, quantity="7"),
            upload=_jpeg_upload(jpeg_bytes),
        )

        assert result.name == "Phone"
        assert result.price == 199.99
        assert result.quantity == 7
        assert result.category_id == category.id
        assert result.id is not None
        assert public_id_from_url(result.image) == "CloudinaryDemo/asset1"
        assert public_id_from_url(result.thumbnail_image) == "CloudinaryDemo/asset2"
        assert len(asset_store.uploaded) == 2
        mock_db_session.add.assert_called_once()

    @pytest.mark.asyncio
    async def test_validation_runs_before_image_check(self, mock_db_session, image_pipeline, asset_store):
        with pytest.raises(ValidationFailedError):
            await self.service.create_product(
                db=mock_db_session, pipeline=image_pipeline, fields={}, upload=None
            )
        assert asset_store.uploaded == []

    @pytest.mark.asyncio
    async def test_missing_image(self, mock_db_session, image_pipeline, category):
        with pytest.raises(MissingImageError) as exc_info:
            await self.service.create_product(
                db=mock_db_session,
                pipeline=image_pipeline,
                fields=product_form(category.id),
                upload=None,
            )
        assert exc_info.value.message == "No image file uploaded"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_asset_failure_persists_nothing(
        self, mock_db_session, image_pipeline, asset_store, category, jpeg_bytes
    ):
        asset_store.fail_on = {1}
        with pytest.raises(AssetUploadFailedError):
            await self.service.create_product(
                db=mock_db_session,
                pipeline=image_pipeline,
                fields=product_form(category.id),
                upload=_jpeg_upload(jpeg_bytes),
            )
        mock_db_session.add.assert_not_called()
        assert asset_store.destroyed == ["CloudinaryDemo/asset2"]

    @pytest.mark.asyncio
    async def test_db_failure_discards_new_pair(
        self, mock_db_session, image_pipeline, asset_store, category, jpeg_bytes
    ):
        mock_db_session.flush = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("down")))

        with pytest.raises(DatabaseError):
            await self.service.create_product(
                db=mock_db_session,
                pipeline=image_pipeline,
                fields=product_form(category.id),
                upload=_jpeg_upload(jpeg_bytes),
            )
        assert sorted(asset_store.destroyed) == ["CloudinaryDemo/asset1", "CloudinaryDemo/asset2"]


class TestUpdateProduct:

    def setup_method(self):
        self.service = ProductService()

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, mock_db_session, image_pipeline, asset_store, product):
        result = await self.service.update_product(
            db=mock_db_session,
            pipeline=image_pipeline,
            product_id=str(product.id),
            fields={"name": "Renamed", "price": "10"},
            upload=None,
        )

        assert result.name == "Renamed"
        assert result.price == 10.0
        assert result.title == "Phone 1 title"
        assert result.quantity == 5
        assert asset_store.uploaded == []
        assert asset_store.destroyed == []

    @pytest.mark.asyncio
    async def test_new_image_replaces_pair_and_discards_old(
        self, mock_db_session, image_pipeline, asset_store, product, png_bytes
    ):
        result = await self.service.update_product(
            db=mock_db_session,
            pipeline=image_pipeline,
            product_id=str(product.id),
            fields={},
            upload=UploadedImage(content=png_bytes, content_type="image/png", filename="p.png"),
        )

        assert public_id_from_url(result.image) == "CloudinaryDemo/asset1"
        assert public_id_from_url(result.thumbnail_image) == "CloudinaryDemo/asset2"
        assert sorted(asset_store.destroyed) == [
            "CloudinaryDemo/old-image-1",
            "CloudinaryDemo/old-thumb-1",
        ]

    @pytest.mark.asyncio
    async def test_old_pair_discarded_only_after_commit(
        self, mock_db_session, image_pipeline, asset_store, product, png_bytes
    ):
        destroyed_at_commit = []

        async def commit():
            destroyed_at_commit.append(list(asset_store.destroyed))

        mock_db_session.commit = AsyncMock(side_effect=commit)

        await self.service.update_product(
            db=mock_db_session,
            pipeline=image_pipeline,
            product_id=str(product.id),
            fields={},
            upload=UploadedImage(content=png_bytes, content_type="image/png", filename="p.png"),
        )

        assert destroyed_at_commit == [[]]
        assert len(asset_store.destroyed) == 2

    @pytest.mark.asyncio
    async def test_commit_failure_keeps_old_pair(
        self, mock_db_session, image_pipeline, asset_store, product, png_bytes
    ):
        mock_db_session.commit = AsyncMock(
            side_effect=OperationalError("COMMIT", {}, Exception("connection lost"))
        )

        with pytest.raises(DatabaseError):
            await self.service.update_product(
                db=mock_db_session,
                pipeline=image_pipeline,
                product_id=str(product.id),
                fields={},
                upload=UploadedImage(content=png_bytes, content_type="image/png", filename="p.png"),
            )

        # only the new, never-committed pair is removed
        assert sorted(asset_store.destroyed) == ["CloudinaryDemo/asset1", "CloudinaryDemo/asset2"]

    @pytest.mark.asyncio
    async def test_invalid_field_changes_nothing(self, mock_db_session, image_pipeline, product):
        with pytest.raises(ValidationFailedError) as exc_info:
            await self.service.update_product(
                db=mock_db_session,
                pipeline=image_pipeline,
                product_id=str(product.id),
                fields={"name": "Renamed", "price": "123456"},
                upload=None,
            )
        assert exc_info.value.errors == {"price": "Price must be less than 100000"}
        assert product.name == "Phone 1"

    @pytest.mark.asyncio
    async def test_unknown_product(self, mock_db_session, image_pipeline):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.update_product(
                db=mock_db_session,
                pipeline=image_pipeline,
                product_id=str(uuid.uuid4()),
                fields={"name": "x"},
                upload=None,
            )
        assert exc_info.value.message == "Product not found"

    @pytest.mark.asyncio
    async def test_malformed_id(self, mock_db_session, image_pipeline):
        with pytest.raises(ValidationFailedError) as exc_info:
            await self.service.update_product(
                db=mock_db_session,
                pipeline=image_pipeline,
                product_id="abc",
                fields={},
                upload=None,
            )
        assert exc_info.value.errors == {"id": "Invalid product ID"}


class TestDeleteAndGet:

    def setup_method(self):
        self.service = ProductService()

    @pytest.mark.asyncio
    async def test_delete_removes_row_and_images(self, mock_db_session, image_pipeline, asset_store, product):
        await self.service.delete_product(
            db=mock_db_session, pipeline=image_pipeline, product_id=str(product.id)
        )

        mock_db_session.delete.assert_awaited_once_with(product)
        assert sorted(asset_store.destroyed) == [
            "CloudinaryDemo/old-image-1",
            "CloudinaryDemo/old-thumb-1",
        ]

    @pytest.mark.asyncio
    async def test_get_after_delete_is_not_found(self, mock_db_session, image_pipeline, product):
        await self.service.delete_product(
            db=mock_db_session, pipeline=image_pipeline, product_id=str(product.id)
        )
        with pytest.raises(NotFoundError):
            await self.service.get_product(mock_db_session, str(product.id))

    @pytest.mark.asyncio
    async def test_delete_survives_asset_store_outage(
        self, mock_db_session, image_pipeline, asset_store, product
    ):
        asset_store.fail_destroy = True
        await self.service.delete_product(
            db=mock_db_session, pipeline=image_pipeline, product_id=str(product.id)
        )
        mock_db_session.delete.assert_awaited_once_with(product)

    @pytest.mark.asyncio
    async def test_delete_unknown(self, mock_db_session, image_pipeline, asset_store):
        with pytest.raises(NotFoundError):
            await self.service.delete_product(
                db=mock_db_session, pipeline=image_pipeline, product_id=str(uuid.uuid4())
            )
        assert asset_store.destroyed == []

    @pytest.mark.asyncio
    async def test_get(self, mock_db_session, product):
        result = await self.service.get_product(mock_db_session, str(product.id))
        assert result.id == product.id
        assert result.image == product.image


class TestListProducts:

    def setup_method(self):
        self.service = ProductService()

    @pytest.mark.asyncio
    async def test_page_math(self, mock_db_session, category):
        items = [make_product(category, index=i) for i in range(6, 11)]
        mock_db_session.execute.side_effect = execute_results(12, items)

        result = await self.service.list_products(
            mock_db_session, PageRequest(page=2, per_page=5)
        )

        assert result.current_page == 2
        assert result.total_pages == 3
        assert result.total_products == 12
        assert result.products_per_page == 5
        assert len(result.products) == 5
        assert result.products[0].category.name == "Electronics"

    @pytest.mark.asyncio
    async def test_empty(self, mock_db_session):
        mock_db_session.execute.side_effect = execute_results(0, [])
        result = await self.service.list_products(mock_db_session, PageRequest())
        assert result.total_pages == 0
        assert result.products == []

    @pytest.mark.asyncio
    async def test_unknown_sort_field(self, mock_db_session):
        with pytest.raises(ValidationFailedError) as exc_info:
            await self.service.list_products(
                mock_db_session, PageRequest(sort_field="password")
            )
        assert exc_info.value.errors == {"sortField": "Invalid sort field"}
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_category_filter(self, mock_db_session):
        with pytest.raises(ValidationFailedError) as exc_info:
            await self.service.list_products(
                mock_db_session, PageRequest(), category="electronics"
            )
        assert exc_info.value.errors == {"category": "Invalid category ID"}

    @pytest.mark.asyncio
    async def test_filters_reach_query(self, mock_db_session, category):
        mock_db_session.execute.side_effect = execute_results(0, [])
        await self.service.list_products(
            mock_db_session,
            PageRequest(sort_field="price", sort_order="desc"),
            name="pho",
            category=str(category.id),
        )

        page_query = str(mock_db_session.execute.await_args_list[1].args[0])
        assert "lower(products.name) LIKE" in page_query
        assert "products.category_id =" in page_query
        assert "ORDER BY products.price DESC" in page_query
