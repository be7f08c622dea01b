"""
Storefront Backend — ORM Models

Importing this package registers every table on `Base.metadata`.
"""

from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.user import User

__all__ = ["Category", "Product", "User"]
