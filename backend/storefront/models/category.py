"""
Storefront Backend — Category SQLAlchemy Model
================================================

What:  ORM model for the `categories` table.
Why:   Products must reference an existing category; listings expand the
       reference to the category name.
Who:   Read by the category listing, the product listing join and the
       `category_exists` validation rule. Never written by this service.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base


class Category(Base):
    """A product category. Referenced by products, never owns them."""

    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    # Unique: categories are looked up and displayed by name
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"
