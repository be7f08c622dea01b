"""
Storefront Backend — Auth Service
===================================

What:  Login (credential check → signed token) and identity lookup.
Why:   The only two places that read the users table.

Login never reveals whether the email exists: an unknown email and a wrong
password raise the same InvalidCredentialsError.
"""

import logging
import secrets
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.exceptions import (
    DatabaseError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
)
from storefront.models.user import User
from storefront.schemas.auth import UserOut
from storefront.security import TokenIdentity, create_access_token
from storefront.services.validation import LOGIN_RULES, parse_uuid, validate_fields

logger = logging.getLogger(__name__)


class AuthService:

    async def login(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> str:
        """
        Check credentials and issue a token.

        Returns:
            Signed bearer token embedding the user id, valid for one hour.

        Raises:
            ValidationFailedError: email or password missing
            InvalidCredentialsError: unknown email or wrong password
        """
        await validate_fields({"email": email, "password": password}, LOGIN_RULES, db)

        try:
            result = await db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise DatabaseError(message="Error logging in")

        # compare_digest: equality without leaking the match length through timing
        if user is None or not secrets.compare_digest(
            user.password.encode("utf-8"), password.encode("utf-8")
        ):
            logger.info("Failed login attempt")
            raise InvalidCredentialsError()

        logger.info("User %s logged in", user.id)
        return create_access_token(str(user.id))

    async def get_current_user(self, db: AsyncSession, identity: TokenIdentity) -> UserOut:
        """Resolve the token's user id. The account may have been removed since issue."""
        user_id = parse_uuid(identity.user_id)
        if user_id is None:
            raise InvalidTokenError(context={"reason": "malformed_user_id"})

        try:
            user = await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(message="Error fetching user")

        if user is None:
            raise NotFoundError(resource="User", resource_id=str(user_id))
        return UserOut.model_validate(user)


auth_service = AuthService()
