"""
Storefront Backend — User SQLAlchemy Model
============================================

What:  ORM model for the `users` table.
Who:   Read by the login flow and the identity lookup. Accounts are
       provisioned outside this service; nothing here creates or mutates them.

Note:
    `password` is an opaque comparison value. Login compares it to the
    submitted password for equality; no hashing scheme is applied here.
"""

import uuid

from sqlalchemy import String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
