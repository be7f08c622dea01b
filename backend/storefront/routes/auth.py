"""
Storefront Backend — Auth Route Handlers
==========================================

Route Inventory:
    POST /api/login   public   email + password → bearer token (1 hour)
    GET  /api/me      bearer   id and email of the token's user
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db_session
from storefront.schemas.auth import LoginRequest, LoginResponse, MeResponse
from storefront.schemas.common import ErrorResponse
from storefront.security import TokenIdentity, require_identity
from storefront.services.auth_service import auth_service

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing fields or invalid credentials", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Exchange email and password for a bearer token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    token = await auth_service.login(db=db, email=payload.email, password=payload.password)
    return LoginResponse(message="Login successful", token=token)


@router.get(
    "/me",
    response_model=MeResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "User no longer exists", "model": ErrorResponse},
    },
    summary="Identity of the current token",
)
async def me(
    identity: TokenIdentity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
) -> MeResponse:
    user = await auth_service.get_current_user(db=db, identity=identity)
    return MeResponse(message="User found", user=user)
