"""
Mindtrail Backend - Auth Schemas
=================================

Request and response bodies for /auth/register, /auth/login and /auth/me.
Password hashes never appear in any response model.
"""

import uuid
from typing import Annotated

from pydantic import Field, StringConstraints, field_validator

from app.schemas.common import CamelModel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

MIN_PASSWORD_LENGTH = 6


def normalize_email(value: str) -> str:
    """Lowercases and trims an email; the stored form of every address."""
    return value.strip().lower()


class RegisterRequest(CamelModel):
    email: NonEmptyStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    name: NonEmptyStr

    @field_validator("email")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_email(v)


class LoginRequest(CamelModel):
    email: NonEmptyStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_email(v)


class UserSummary(CamelModel):
    id: uuid.UUID
    email: str
    name: str


class AuthResponse(CamelModel):
    """Returned by register (201) and login (200)."""
    token: str = Field(description="Signed bearer token, valid for JWT_EXPIRE_HOURS")
    user: UserSummary


class Identity(CamelModel):
    """
    The verified caller, attached to every bearer-protected request.

    Serialized as {"userId": ..., "email": ..., "name": ...}.
    """
    user_id: uuid.UUID
    email: str
    name: str
