"""
Mindtrail Backend - Request Dependencies
=========================================

What:  FastAPI dependency resolving the bearer token to the caller's Identity.
How:   `HTTPBearer(auto_error=False)` extracts the token so a missing header
       reaches AuthService.verify() and is reported in the standard error
       shape (401) instead of FastAPI's default 403. The verified user id is
       also put on `request.state` for the access log.
Who:   Declared on every bearer route; routes/policy.py checks that it is.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.auth import Identity
from app.services.auth_service import auth_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Identity:
    token = credentials.credentials if credentials else None
    identity = await auth_service.verify(db, token)
    request.state.user_id = identity.user_id
    return identity
