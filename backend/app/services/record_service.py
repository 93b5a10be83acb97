"""
Mindtrail Backend - Record Service (Form Record Stores)
========================================================

What:  One save operation per form: onboarding answers, journal entries,
       muscle selections, journeys, post-experience notes, audio summaries.
How:   Request bodies arrive already checked for presence, type and date
       format (see app/schemas/records.py). Each save stamps the record
       with the verified caller's user id and email, inserts it, flushes
       to obtain defaults, and returns the stored representation. The
       request session commits once the route returns; saveAudio also
       commits before waiting on the summarization provider.
Who:   Called by the /api form routes.

Every save is a single insert; a failed insert leaves nothing behind and
surfaces as DatabaseError (500).
"""

import logging
from typing import List, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, ValidationError
from app.models.records import (
    AUDIO_STATUS_COMPLETED,
    AUDIO_STATUS_DEGRADED,
    Audio,
    Journal,
    Journey,
    MuscleSelection,
    Muscle,
    OnboardingQuestion,
    PostExperience,
)
from app.schemas.auth import Identity, normalize_email
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
from app.services.summary_service import SummaryService

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


def parse_muscles(tokens: List[str]) -> List[Muscle]:
    """
    Normalize (trim, uppercase) and validate muscle tokens.

    Validation is total: every token outside the vocabulary is reported in
    one ValidationError, in submission order.
    """
    cleaned = [token.strip().upper() for token in tokens]
    valid_values = {muscle.value for muscle in Muscle}
    invalid = [token for token in cleaned if token not in valid_values]
    if invalid:
        raise ValidationError(
            message=f"Invalid muscles: {', '.join(invalid)}",
            fields=["selectedMuscles"],
            context={"invalid": invalid},
        )
    return [Muscle(token) for token in cleaned]


class RecordService:
    """Stateless; receives the request session on every call."""

    async def _persist(self, db: AsyncSession, record: RecordT, kind: str) -> RecordT:
        try:
            db.add(record)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error saving %s: %s", kind, str(e), exc_info=True)
            raise DatabaseError(
                message="Internal server error",
                context={"record": kind, "error_type": type(e).__name__},
            )
        logger.info("Saved %s %s for user %s", kind, record.id, record.user_id)
        return record

    async def _release_connection(self, db: AsyncSession) -> None:
        try:
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error ending transaction: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Internal server error",
                context={"error_type": type(e).__name__},
            )

    async def save_answers(
        self, db: AsyncSession, identity: Identity, payload: SaveAnswersRequest
    ) -> OnboardingQuestionOut:
        record = OnboardingQuestion(
            user_id=identity.user_id,
            email=identity.email,
            responses=[item.model_dump(by_alias=True) for item in payload.responses],
        )
        await self._persist(db, record, "onboarding answers")
        return OnboardingQuestionOut.model_validate(record)

    async def save_journal(
        self, db: AsyncSession, identity: Identity, payload: JournalRequest
    ) -> JournalOut:
        entry = payload.journal_entry
        record = Journal(
            user_id=identity.user_id,
            email=identity.email,
            medicine=entry.medicine,
            intention=entry.intention,
            experience_date=entry.experience_date,
            current_state=entry.current_state,
            post_experience=entry.post_experience,
        )
        await self._persist(db, record, "journal")
        return JournalOut.model_validate(record)

    async def save_muscles(
        self, db: AsyncSession, identity: Identity, payload: SaveMusclesRequest
    ) -> MuscleSelectionOut:
        """
        Always inserts a new selection; earlier selections are never updated.

        Raises:
            ValidationError: one or more tokens are not in the Muscle set.
        """
        muscles = parse_muscles(payload.selected_muscles)
        record = MuscleSelection(
            user_id=identity.user_id,
            email=identity.email,
            date=payload.date,
            selected_muscles=[muscle.value for muscle in muscles],
        )
        await self._persist(db, record, "muscle selection")
        return MuscleSelectionOut.model_validate(record)

    async def save_journey(
        self, db: AsyncSession, identity: Identity, payload: StoryAnswersRequest
    ) -> JourneyOut:
        """
        The owner is always the verified caller. A body `email`, if sent,
        must name that same account.
        """
        if payload.email is not None and normalize_email(payload.email) != identity.email:
            raise ValidationError(
                message="Email does not match the authenticated user.",
                fields=["email"],
            )
        record = Journey(
            user_id=identity.user_id,
            email=identity.email,
            date=payload.date,
            levels=[level.model_dump(by_alias=True) for level in payload.levels],
        )
        await self._persist(db, record, "journey")
        return JourneyOut.model_validate(record)

    async def save_post_experience(
        self, db: AsyncSession, identity: Identity, payload: SavePostExperienceRequest
    ) -> PostExperienceOut:
        record = PostExperience(
            user_id=identity.user_id,
            email=identity.email,
            date=payload.date,
            post_experience=payload.journal_entry.post_experience,
        )
        await self._persist(db, record, "post-experience")
        return PostExperienceOut.model_validate(record)

    async def save_audio(
        self,
        db: AsyncSession,
        identity: Identity,
        payload: SaveAudioRequest,
        summarizer: SummaryService,
    ) -> AudioOut:
        """
        Summarize the submitted text, then store the outcome.

        The record is stored either way: 'completed' with the summary, or
        'degraded' with no summary and the upstream reason.

        The request transaction (opened by the identity lookup) is committed
        before the provider call, so no pooled connection is held while the
        summary is pending. The insert runs in a fresh transaction.
        """
        await self._release_connection(db)
        result = await summarizer.summarize(payload.post_experience)

        record = Audio(
            user_id=identity.user_id,
            email=identity.email,
            date=payload.date,
            audio=result.text,
            status=AUDIO_STATUS_DEGRADED if result.degraded else AUDIO_STATUS_COMPLETED,
            error_message=result.error,
        )
        await self._persist(db, record, "audio")
        return AudioOut.model_validate(record)


# ── Singleton Instance ────────────────────────────────────────────────────
record_service = RecordService()
