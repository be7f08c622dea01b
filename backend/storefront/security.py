"""
Storefront Backend — Token Guard
==================================

What:  Issues and verifies the signed bearer tokens used on mutating routes.
Why:   Tokens are stateless: the signature and the `exp` claim are the whole
       story. There is no session table and no revocation list.
How:   python-jose signs `{userId, iat, exp}` with the configured HMAC secret.
       `require_identity` is a FastAPI dependency that rejects the request
       before the handler runs.

Failure modes:
    No Authorization header (or an empty one)  → UnauthenticatedError (401)
    Bad signature / expired / malformed / no userId → InvalidTokenError (401)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request
from jose import ExpiredSignatureError, JWTError, jwt

from storefront.config import settings
from storefront.exceptions import InvalidTokenError, UnauthenticatedError

logger = logging.getLogger(__name__)

USER_ID_CLAIM = "userId"
BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class TokenIdentity:
    """Decoded identity claim attached to `request.state.identity`."""

    user_id: str
    expires_at: Optional[datetime] = None


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token for `user_id` that expires after `jwt_expire_minutes`."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    claims = {USER_ID_CLAIM: str(user_id), "iat": now, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenIdentity:
    """
    Verify signature and expiry and return the identity claim.

    Raises:
        InvalidTokenError: for any verification failure
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise InvalidTokenError(context={"reason": "expired"})
    except JWTError as e:
        logger.info("Rejected token: %s", str(e))
        raise InvalidTokenError(context={"reason": type(e).__name__})

    user_id = payload.get(USER_ID_CLAIM)
    if not user_id:
        raise InvalidTokenError(context={"reason": "missing_user_id"})

    exp = payload.get("exp")
    expires_at = datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None
    return TokenIdentity(user_id=str(user_id), expires_at=expires_at)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Strip the `Bearer ` prefix; return None when nothing usable is left."""
    if not authorization:
        return None
    token = authorization
    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]
    token = token.strip()
    return token or None


async def require_identity(request: Request) -> TokenIdentity:
    """
    FastAPI dependency guarding authenticated routes.

    Runs before the route handler, so a missing token short-circuits the
    request before any upload, validation or database work happens.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise UnauthenticatedError()

    identity = decode_access_token(token)
    request.state.identity = identity
    return identity
