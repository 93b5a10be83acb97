"""
Mindtrail Backend - Form Record SQLAlchemy Models
==================================================

What:  ORM models for the six append-only form tables.
How:   Each model mixes in `RecordMixin`, which supplies the id, the owning
       user (foreign key + denormalized email) and the creation timestamp.
       Nested client payloads (answer lists, journey levels, muscle lists)
       are stored in JSON columns (JSONB on PostgreSQL).
Who:   Written by RecordService; read by ProfileService.

Lifecycle:
    Records are inserted once and never updated or deleted.

Query Patterns:
    - Latest per user:  WHERE user_id = :id ORDER BY created_at DESC LIMIT 1
    - History per user: WHERE user_id = :id ORDER BY created_at ASC
    Both use the (user_id, created_at) index declared on every table.
"""

import enum
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from app.database import Base
from app.models.user import utcnow

JSONType = JSON().with_variant(JSONB(), "postgresql")

AUDIO_STATUS_COMPLETED = "completed"
AUDIO_STATUS_DEGRADED = "degraded"


class RecordMixin:
    """Columns shared by every form record table."""

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Denormalized copy of users.email at write time
    email: Mapped[str] = mapped_column(String(320), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    @declared_attr.directive
    def __table_args__(cls):
        return (
            Index(f"idx_{cls.__tablename__}_user_created", "user_id", "created_at"),
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, email='{self.email}')>"


class OnboardingQuestion(RecordMixin, Base):
    __tablename__ = "onboarding_questions"

    # [{"question": str, "answer": str}, ...] in submission order
    responses: Mapped[List[Dict[str, Any]]] = mapped_column(JSONType, nullable=False)


class Journal(RecordMixin, Base):
    __tablename__ = "journals"

    medicine: Mapped[str] = mapped_column(Text, nullable=False)
    intention: Mapped[str] = mapped_column(Text, nullable=False)
    experience_date: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="Calendar date of the experience, YYYY-MM-DD",
    )
    current_state: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    post_experience: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class MuscleSelection(RecordMixin, Base):
    __tablename__ = "muscle_selections"

    date: Mapped[str] = mapped_column(String(10), nullable=False)
    # Normalized Muscle enum values, e.g. ["CHEST", "ABS"]
    selected_muscles: Mapped[List[str]] = mapped_column(JSONType, nullable=False)


class Journey(RecordMixin, Base):
    __tablename__ = "journeys"

    date: Mapped[str] = mapped_column(String(10), nullable=False)
    # [{"title": str, "questionAnswers": [{"question": str, "answer": str}]}]
    levels: Mapped[List[Dict[str, Any]]] = mapped_column(JSONType, nullable=False)


class PostExperience(RecordMixin, Base):
    __tablename__ = "post_experiences"

    date: Mapped[str] = mapped_column(String(10), nullable=False)
    post_experience: Mapped[str] = mapped_column(Text, nullable=False)


class Audio(RecordMixin, Base):
    """
    A summarized post-experience recording.

    status:
        'completed': `audio` holds the model's summary
        'degraded':  the summarization call failed; `audio` is NULL and
                     `error_message` holds the upstream failure reason
    """

    __tablename__ = "audios"

    date: Mapped[str] = mapped_column(String(10), nullable=False)
    audio: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Summary text returned by the chat-completion API",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AUDIO_STATUS_COMPLETED,
        server_default=text("'completed'"),
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Muscle(str, enum.Enum):
    """Closed vocabulary of selectable body regions."""

    CHEST = "CHEST"
    OBLIQUES = "OBLIQUES"
    ABS = "ABS"
    BICEPS = "BICEPS"
    TRICEPS = "TRICEPS"
    NECK = "NECK"
    FRONT_DELTOIDS = "FRONT_DELTOIDS"
    HEAD = "HEAD"
    ABDUCTORS = "ABDUCTORS"
    QUADRICEPS = "QUADRICEPS"
    KNEES = "KNEES"
    CALVES = "CALVES"
    FOREARM = "FOREARM"
    TRAPEZIUS = "TRAPEZIUS"
    BACK_DELTOIDS = "BACK_DELTOIDS"
    UPPER_BACK = "UPPER_BACK"
    LOWER_BACK = "LOWER_BACK"
    GLUTEAL = "GLUTEAL"
    HAMSTRING = "HAMSTRING"
    LEFT_SOLEUS = "LEFT_SOLEUS"
    RIGHT_SOLEUS = "RIGHT_SOLEUS"
