"""
Mindtrail Backend - Auth Route Handlers
========================================

What:  POST /auth/register, POST /auth/login, GET /auth/me.
How:   Bodies are validated by the request schemas; AuthService does the
       rest. Failures propagate to the global exception handlers.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_identity
from app.schemas.auth import AuthResponse, Identity, LoginRequest, RegisterRequest
from app.schemas.common import ErrorResponse
from app.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={
        400: {"description": "Invalid body or email already registered", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.register(db, payload)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Exchange credentials for a bearer token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.login(db, payload)


@router.get(
    "/me",
    response_model=Identity,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Token user no longer exists", "model": ErrorResponse},
    },
    summary="The authenticated caller",
)
async def me(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Echo the verified identity; the password hash is never included."""
    return identity
