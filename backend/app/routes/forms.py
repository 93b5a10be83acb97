"""
Mindtrail Backend - Form Route Handlers
========================================

What:  The six bearer-protected save endpoints under /api.
How:   Each handler takes the validated body and the verified Identity,
       delegates to RecordService, and wraps the stored record in the
       `{message, data}` envelope with 201 Created.

Route Inventory:
    POST /api/save-answers          onboarding answers
    POST /api/journal               journal entry
    POST /api/save-muscles          muscle selection
    POST /api/story-answers         journey levels
    POST /api/savePostExperience    post-experience note
    POST /api/saveAudio             summarized post-experience
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_identity
from app.models.records import AUDIO_STATUS_DEGRADED
from app.schemas.auth import Identity
from app.schemas.common import DataResponse, ErrorResponse
from app.schemas.records import (
    AudioOut,
    JournalOut,
    JournalRequest,
    JourneyOut,
    MuscleSelectionOut,
    OnboardingQuestionOut,
    PostExperienceOut,
    SaveAnswersRequest,
    SaveAudioRequest,
    SaveMusclesRequest,
    SavePostExperienceRequest,
    StoryAnswersRequest,
)
from app.services.record_service import record_service
from app.services.summary_service import (
    SUMMARY_UNAVAILABLE_MESSAGE,
    SummaryService,
    get_summary_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Forms"])

# Shared failure documentation for every save endpoint
SAVE_RESPONSES = {
    400: {"description": "Missing or invalid field", "model": ErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.post(
    "/save-answers",
    status_code=201,
    response_model=DataResponse[OnboardingQuestionOut],
    responses=SAVE_RESPONSES,
    summary="Save onboarding answers",
)
async def save_answers(
    payload: SaveAnswersRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[OnboardingQuestionOut]:
    record = await record_service.save_answers(db, identity, payload)
    return DataResponse(message="Answers saved successfully!", data=record)


@router.post(
    "/journal",
    status_code=201,
    response_model=DataResponse[JournalOut],
    responses=SAVE_RESPONSES,
    summary="Save a journal entry",
)
async def save_journal(
    payload: JournalRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[JournalOut]:
    record = await record_service.save_journal(db, identity, payload)
    return DataResponse(message="Journal entry saved successfully!", data=record)


@router.post(
    "/save-muscles",
    status_code=201,
    response_model=DataResponse[MuscleSelectionOut],
    responses=SAVE_RESPONSES,
    summary="Save a muscle selection",
    description=(
        "Tokens are trimmed and uppercased, then checked against the muscle "
        "vocabulary. Every invalid token is reported in one 400 response."
    ),
)
async def save_muscles(
    payload: SaveMusclesRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[MuscleSelectionOut]:
    record = await record_service.save_muscles(db, identity, payload)
    return DataResponse(message="Muscles saved successfully!", data=record)


@router.post(
    "/story-answers",
    status_code=201,
    response_model=DataResponse[JourneyOut],
    responses=SAVE_RESPONSES,
    summary="Save journey levels",
    description="The record belongs to the token's user; a body `email` must match it.",
)
async def save_story_answers(
    payload: StoryAnswersRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[JourneyOut]:
    record = await record_service.save_journey(db, identity, payload)
    return DataResponse(message="Journey saved successfully!", data=record)


@router.post(
    "/savePostExperience",
    status_code=201,
    response_model=DataResponse[PostExperienceOut],
    responses=SAVE_RESPONSES,
    summary="Save a post-experience note",
)
async def save_post_experience(
    payload: SavePostExperienceRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[PostExperienceOut]:
    record = await record_service.save_post_experience(db, identity, payload)
    return DataResponse(message="Journal entry saved successfully!", data=record)


@router.post(
    "/saveAudio",
    status_code=201,
    response_model=DataResponse[AudioOut],
    responses=SAVE_RESPONSES,
    summary="Summarize and save a post-experience account",
    description=(
        "Sends `postExperience` to the summarization API and stores the result. "
        "If the API fails, the record is stored with status 'degraded' and no "
        "summary, and the response message is an apology."
    ),
)
async def save_audio(
    payload: SaveAudioRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    summarizer: SummaryService = Depends(get_summary_service),
) -> DataResponse[AudioOut]:
    record = await record_service.save_audio(db, identity, payload, summarizer)
    if record.status == AUDIO_STATUS_DEGRADED:
        return DataResponse(message=SUMMARY_UNAVAILABLE_MESSAGE, data=record)
    return DataResponse(message="Audio entry saved successfully!", data=record)
