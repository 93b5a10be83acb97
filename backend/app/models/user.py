"""
Mindtrail Backend - User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table (the credential store).
Who:   Used by AuthService for registration, login and token verification,
       and by ProfileService to resolve an email to a user.

Table Design:
    - UUID primary key: every form record references it via `user_id`
    - email: unique, stored lowercased and trimmed (normalized by AuthService)
    - password_hash: bcrypt hash, never returned by any schema
    - is_first_login: carried for the client onboarding flow
    - created_at: UTC, timezone-aware
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered account.

    Lifecycle:
        Created at registration; immutable afterwards except for the password.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
        comment="Lowercased, trimmed email; unique login identifier",
    )

    password_hash: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="bcrypt hash of the password",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    is_first_login: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
