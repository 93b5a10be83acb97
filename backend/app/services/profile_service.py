"""
Mindtrail Backend - Profile Service (Profile Aggregator)
=========================================================

What:  Builds the composite profile bundle for one user: the account, the
       latest record of every form, and the full history of most forms.
How:   Looks the user up by (normalized) email, then runs one independent
       query per bundle field on the request session. A form with no
       records yields null (latest) or [] (history).
Who:   Called by POST /api/profile.

Consistency:
    The reads are not wrapped in a snapshot; a write landing between two
    reads may show up in one field and not another.
"""

import logging
from typing import List, Optional, Type, TypeVar

from sqlalchemy import asc, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError
from app.models.records import (
    Audio,
    Journal,
    Journey,
    MuscleSelection,
    OnboardingQuestion,
    PostExperience,
)
from app.models.user import User
from app.schemas.auth import Identity
from app.schemas.profile import ProfileBundle, UserProfile
from app.schemas.records import (
    AudioOut,
    JournalOut,
    JourneyOut,
    MuscleSelectionOut,
    OnboardingQuestionOut,
    PostExperienceOut,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class ProfileService:
    """Read-only aggregation over the user and form record tables."""

    async def _latest(self, db: AsyncSession, model: Type[ModelT], user: User) -> Optional[ModelT]:
        query = (
            select(model)
            .where(model.user_id == user.id)
            .order_by(desc(model.created_at))
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def _history(self, db: AsyncSession, model: Type[ModelT], user: User) -> List[ModelT]:
        query = (
            select(model)
            .where(model.user_id == user.id)
            .order_by(asc(model.created_at))
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_profile(self, db: AsyncSession, identity: Identity, email: str) -> ProfileBundle:
        """
        Aggregate every record stored for the user registered under `email`.

        Args:
            db: request session
            identity: the verified caller (logged for auditing)
            email: normalized email of the profile to read

        Raises:
            NotFoundError: no user is registered under `email`
            DatabaseError: any query failed
        """
        try:
            result = await db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
            if user is None:
                raise NotFoundError(resource="user", message="User not found")

            journal_history = await self._history(db, Journal, user)
            onboarding = await self._latest(db, OnboardingQuestion, user)
            latest_journal = await self._latest(db, Journal, user)
            latest_muscles = await self._latest(db, MuscleSelection, user)
            latest_journey = await self._latest(db, Journey, user)
            latest_post = await self._latest(db, PostExperience, user)
            latest_audio = await self._latest(db, Audio, user)
            muscles_history = await self._history(db, MuscleSelection, user)
            journey_history = await self._history(db, Journey, user)
            post_history = await self._history(db, PostExperience, user)
            audio_history = await self._history(db, Audio, user)

        except NotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error building profile: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Error fetching profile data",
                context={"error_type": type(e).__name__},
            )

        logger.info(
            "Profile for user %s requested by %s (%d journals)",
            user.id,
            identity.user_id,
            len(journal_history),
        )

        return ProfileBundle(
            user=UserProfile.model_validate(user),
            dates=[journal.experience_date for journal in journal_history],
            journal_all_data=[JournalOut.model_validate(j) for j in journal_history],
            onboarding_question=_maybe(OnboardingQuestionOut, onboarding),
            journals=_maybe(JournalOut, latest_journal),
            muscle_selections=_maybe(MuscleSelectionOut, latest_muscles),
            journeys=_maybe(JourneyOut, latest_journey),
            post_experiences=_maybe(PostExperienceOut, latest_post),
            audios=_maybe(AudioOut, latest_audio),
            muscle_selections_all=[MuscleSelectionOut.model_validate(m) for m in muscles_history],
            journeys_all=[JourneyOut.model_validate(j) for j in journey_history],
            post_experiences_all=[PostExperienceOut.model_validate(p) for p in post_history],
            audios_all=[AudioOut.model_validate(a) for a in audio_history],
        )


def _maybe(schema, record):
    return schema.model_validate(record) if record is not None else None


# ── Singleton Instance ────────────────────────────────────────────────────
profile_service = ProfileService()
