"""
Mindtrail Backend - Password Hashing and Bearer Tokens
=======================================================

What:  bcrypt password hashing and JWT (HS256) token issue/decode.
How:   Thin synchronous helpers around `bcrypt` and `python-jose`.
       AuthService runs the bcrypt calls in the threadpool.

Token claims:
    sub     user id (string UUID)
    email   normalized email at issue time
    iat     issued-at
    exp     expiry, JWT_EXPIRE_HOURS after issue
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from app.config import settings


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with a fixed bcrypt work factor."""
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        return False


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed bearer token for a user."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.jwt_expire_hours))
    claims = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a bearer token.

    Returns the claims, or None when the token is malformed, expired, or
    signed with a different key.
    """
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except (JWTError, ValueError):
        return None
