"""
Mindtrail Backend - Profile Schemas
====================================

What:  Request body and aggregated response for POST /api/profile.

Bundle layout (camelCase on the wire):
    user                  the account, without its password hash
    dates                 experienceDate of every journal, oldest first
    journalAllData        every journal, oldest first
    onboardingQuestion    latest onboarding submission (or null)
    journals, muscleSelections, journeys, postExperiences, audios
                          latest record of each kind (or null)
    muscleSelectionsAll, journeysAll, postExperiencesAll, audiosAll
                          full history of each kind, oldest first ([] if none)
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.auth import normalize_email
from app.schemas.common import CamelModel
from app.schemas.records import (
    AudioOut,
    JournalOut,
    JourneyOut,
    MuscleSelectionOut,
    OnboardingQuestionOut,
    PostExperienceOut,
)


class ProfileRequest(CamelModel):
    email: str

    @field_validator("email")
    @classmethod
    def require_email(cls, v: str) -> str:
        normalized = normalize_email(v)
        if not normalized:
            raise ValueError("Email is required")
        return normalized


class UserProfile(CamelModel):
    id: uuid.UUID
    email: str
    name: str
    is_first_login: bool
    created_at: datetime


class ProfileBundle(CamelModel):
    user: UserProfile
    dates: List[str] = Field(default_factory=list)
    journal_all_data: List[JournalOut] = Field(default_factory=list)

    onboarding_question: Optional[OnboardingQuestionOut] = None
    journals: Optional[JournalOut] = None
    muscle_selections: Optional[MuscleSelectionOut] = None
    journeys: Optional[JourneyOut] = None
    post_experiences: Optional[PostExperienceOut] = None
    audios: Optional[AudioOut] = None

    muscle_selections_all: List[MuscleSelectionOut] = Field(default_factory=list)
    journeys_all: List[JourneyOut] = Field(default_factory=list)
    post_experiences_all: List[PostExperienceOut] = Field(default_factory=list)
    audios_all: List[AudioOut] = Field(default_factory=list)
