"""
Storefront Backend — Category Service Tests
"""

import pytest

from storefront.exceptions import ValidationFailedError
from storefront.services.category_service import CategoryService
from storefront.services.pagination import PageRequest, page_count

from conftest import execute_results


class TestListCategories:

    def setup_method(self):
        self.service = CategoryService()

    @pytest.mark.asyncio
    async def test_listing(self, mock_db_session, category):
        mock_db_session.execute.side_effect = execute_results(1, [category])

        result = await self.service.list_categories(mock_db_session, PageRequest(per_page=10))

        assert result.message == "Categories fetched successfully"
        assert result.count == 1
        assert result.total_categories == 1
        assert result.total_pages == 1
        assert result.current_page == 1
        assert result.categories[0].name == "Electronics"

    @pytest.mark.asyncio
    async def test_default_sort_is_name(self, mock_db_session):
        mock_db_session.execute.side_effect = execute_results(0, [])
        await self.service.list_categories(mock_db_session, PageRequest(), name="elec")

        page_query = str(mock_db_session.execute.await_args_list[1].args[0])
        assert "ORDER BY categories.name ASC" in page_query
        assert "lower(categories.name) LIKE" in page_query

    @pytest.mark.asyncio
    async def test_unknown_sort_field(self, mock_db_session):
        with pytest.raises(ValidationFailedError):
            await self.service.list_categories(mock_db_session, PageRequest(sort_field="id; drop"))


@pytest.mark.parametrize(
    "total,per_page,expected",
    [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (12, 5, 3)],
)
def test_page_count(total, per_page, expected):
    assert page_count(total, per_page) == expected


def test_offset():
    assert PageRequest(page=3, per_page=20).offset == 40
