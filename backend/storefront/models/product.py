"""
Storefront Backend — Product SQLAlchemy Model
===============================================

What:  ORM model representing the `products` table.
Why:   Central record of the catalogue; every row points at a category and
       at one pair of remote image derivatives.
Who:   Written by ProductService (create/update/delete), read by listings.

Image Pair Invariant:
    `image` and `thumbnail_image` are always produced by the same upload
    operation and are only ever assigned together (ProductService applies
    an ImagePair, never a single URL).

Index on created_at:
    Default listing order is creation order; the index keeps page fetches
    from sorting the whole table.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.database import Base
from storefront.models.category import Category


class Product(Base):
    """
    A catalogue item.

    Lifecycle:
        1. Created after a validated upload produced both image derivatives
        2. Updated field by field; a new upload replaces both URLs at once
        3. Deleted explicitly, together with its remote images
    """

    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # ── Image Pair ────────────────────────────────────────────────────────
    # Public URLs issued by the asset store
    image: Mapped[str] = mapped_column(String(1024), nullable=False)
    thumbnail_image: Mapped[str] = mapped_column(String(1024), nullable=False)

    # ── Stock ─────────────────────────────────────────────────────────────
    # asdecimal=False: the API speaks JSON numbers, not Decimal strings
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    category_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    category: Mapped[Category] = relationship(lazy="raise")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_products_created_at", created_at),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', category_id={self.category_id})>"
