"""
Mindtrail Backend - Profile Route Handler
==========================================

What:  POST /api/profile, the aggregated view of one user's records.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_identity
from app.schemas.auth import Identity
from app.schemas.common import DataResponse, ErrorResponse
from app.schemas.profile import ProfileBundle, ProfileRequest
from app.services.profile_service import profile_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Profile"])


@router.post(
    "/profile",
    response_model=DataResponse[ProfileBundle],
    responses={
        400: {"description": "Email missing", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "No user with that email", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Fetch the aggregated profile for an email",
    description=(
        "Returns the account, the latest record of each form and the history "
        "of journals, muscle selections, journeys, post-experiences and audios. "
        "Forms with no records come back as null or []."
    ),
)
async def get_profile(
    payload: ProfileRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[ProfileBundle]:
    bundle = await profile_service.get_profile(db, identity, payload.email)
    return DataResponse(message="Profile data fetched successfully", data=bundle)
