"""
Mindtrail Backend - Form Record Schemas
========================================

What:  Request bodies for the six form endpoints and the record
       representations returned in their `data` field.
How:   Presence and type checks are declared on the request models, so a
       malformed body is rejected (400) before any service code runs.
       Every date field goes through `normalize_date`, which stores the
       calendar date as YYYY-MM-DD.

Validation that needs the whole payload at once (the muscle vocabulary,
which must report every invalid token together) lives in RecordService.
"""

import uuid
from datetime import date as calendar_date
from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import AfterValidator, Field, StringConstraints

from app.schemas.common import CamelModel


def normalize_date(value: str) -> str:
    """
    Parse a client-supplied date and return it as YYYY-MM-DD.

    Accepts a plain calendar date ("2024-03-05") or an ISO-8601 datetime
    ("2024-03-05T10:00:00Z"). Aware datetimes are converted to UTC before
    the date is taken.

    Only ISO-8601 forms are accepted. Locale-style inputs such as
    "2024/03/05" or "Mar 5 2024" are rejected (400).

    Raises:
        ValueError: the value is not a parseable ISO-8601 date.
    """
    raw = value.strip()
    if not raw:
        raise ValueError("date is required")
    try:
        return calendar_date.fromisoformat(raw).isoformat()
    except ValueError:
        pass
    candidate = raw[:-1] + "+00:00" if raw.endswith(("Z", "z")) else raw
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid date") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
CalendarDate = Annotated[str, AfterValidator(normalize_date)]


# ══════════════════════════════════════════════════════════════════════════
# Shared Parts
# ══════════════════════════════════════════════════════════════════════════


class QuestionAnswer(CamelModel):
    question: NonEmptyStr
    answer: NonEmptyStr


class JourneyLevel(CamelModel):
    title: NonEmptyStr
    question_answers: List[QuestionAnswer] = Field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SaveAnswersRequest(CamelModel):
    """POST /api/save-answers"""
    responses: List[QuestionAnswer] = Field(min_length=1)


class JournalEntryIn(CamelModel):
    medicine: NonEmptyStr
    intention: NonEmptyStr
    experience_date: CalendarDate
    current_state: Optional[str] = None
    post_experience: Optional[str] = None


class JournalRequest(CamelModel):
    """POST /api/journal"""
    journal_entry: JournalEntryIn


class SaveMusclesRequest(CamelModel):
    """
    POST /api/save-muscles

    Tokens are kept as raw strings here; RecordService normalizes them and
    checks them against the Muscle vocabulary.
    """
    selected_muscles: List[str] = Field(min_length=1)
    date: CalendarDate


class StoryAnswersRequest(CamelModel):
    """
    POST /api/story-answers

    `email` is optional; when supplied it must be the caller's own address.
    """
    email: Optional[str] = None
    date: CalendarDate
    levels: List[JourneyLevel] = Field(min_length=1)


class PostExperienceEntryIn(CamelModel):
    post_experience: NonEmptyStr


class SavePostExperienceRequest(CamelModel):
    """POST /api/savePostExperience"""
    journal_entry: PostExperienceEntryIn
    date: CalendarDate


class SaveAudioRequest(CamelModel):
    """POST /api/saveAudio: `postExperience` is the text to summarize."""
    post_experience: NonEmptyStr
    date: CalendarDate


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class RecordOut(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    email: str
    created_at: datetime


class OnboardingQuestionOut(RecordOut):
    responses: List[QuestionAnswer]


class JournalOut(RecordOut):
    medicine: str
    intention: str
    experience_date: str
    current_state: Optional[str] = None
    post_experience: Optional[str] = None


class MuscleSelectionOut(RecordOut):
    date: str
    selected_muscles: List[str]


class JourneyOut(RecordOut):
    date: str
    levels: List[JourneyLevel]


class PostExperienceOut(RecordOut):
    date: str
    post_experience: str


class AudioOut(RecordOut):
    """
    status is "completed" when `audio` holds a summary, "degraded" when the
    summarization call failed (then `audio` is null and `errorMessage` says why).
    """
    date: str
    audio: Optional[str] = None
    status: str
    error_message: Optional[str] = None
