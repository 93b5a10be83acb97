"""
Mindtrail Backend - Auth Service (Credential Store & Auth Gateway)
===================================================================

What:  Registration, login, and bearer-token verification.
How:   Users live in the `users` table; passwords are bcrypt-hashed in the
       threadpool (CPU-bound, must not stall the event loop); tokens are
       HS256 JWTs carrying the user id and email.
Who:   Called by the /auth routes and by the `get_current_identity`
       dependency guarding every bearer route.

Error Mapping:
    duplicate email                      → ConflictError
    unknown email / wrong password       → AuthenticationError (same message)
    missing / malformed / expired token  → AuthenticationError
    token for a user that no longer exists → NotFoundError
    driver failure                       → DatabaseError
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    MindtrailError,
    NotFoundError,
)
from app.models.user import User
from app.schemas.auth import (
    AuthResponse,
    Identity,
    LoginRequest,
    RegisterRequest,
    UserSummary,
)
from app.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password!"
MISSING_TOKEN_MESSAGE = "No auth token found. Please log in."


class AuthService:
    """
    Stateless service; every call receives the request's session.

    Responsibilities:
        - register(): create a user and issue a token
        - login(): check credentials and issue a token
        - verify(): turn a bearer token into an Identity
    """

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    def _issue(self, user: User) -> AuthResponse:
        return AuthResponse(
            token=create_access_token(user.id, user.email),
            user=UserSummary(id=user.id, email=user.email, name=user.name),
        )

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> AuthResponse:
        """
        Create an account.

        Raises:
            ConflictError: the (normalized) email is already registered,
                including when a concurrent registration wins the race.
            DatabaseError: the insert failed for any other reason.
        """
        email = payload.email
        try:
            if await self._find_by_email(db, email) is not None:
                logger.info("Registration rejected: email already registered")
                raise ConflictError()

            password_hash = await run_in_threadpool(hash_password, payload.password)
            user = User(email=email, password_hash=password_hash, name=payload.name)
            db.add(user)
            await db.flush()

        except MindtrailError:
            raise
        except IntegrityError:
            # Unique index on users.email caught a racing duplicate
            await db.rollback()
            raise ConflictError()
        except SQLAlchemyError as e:
            logger.error("Database error during registration: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Error registering user. Please try again later.",
                context={"error_type": type(e).__name__},
            )

        logger.info("User registered: %s", user.id)
        return self._issue(user)

    async def login(self, db: AsyncSession, payload: LoginRequest) -> AuthResponse:
        """
        Check credentials and issue a token.

        The same AuthenticationError is raised for an unknown email and for a
        wrong password.
        """
        try:
            user = await self._find_by_email(db, payload.email)
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Error logging in. Please try again later.",
                context={"error_type": type(e).__name__},
            )

        if user is None:
            raise AuthenticationError(message=INVALID_CREDENTIALS_MESSAGE)

        matches = await run_in_threadpool(verify_password, payload.password, user.password_hash)
        if not matches:
            logger.info("Failed login for user %s", user.id)
            raise AuthenticationError(message=INVALID_CREDENTIALS_MESSAGE)

        return self._issue(user)

    async def verify(self, db: AsyncSession, token: Optional[str]) -> Identity:
        """
        Resolve a bearer token to the caller's identity.

        Raises:
            AuthenticationError: token missing, malformed, expired, or forged
            NotFoundError: the token's user has been removed
        """
        if not token:
            raise AuthenticationError(message=MISSING_TOKEN_MESSAGE)

        claims = decode_access_token(token)
        if not claims:
            raise AuthenticationError()

        try:
            user_id = uuid.UUID(str(claims.get("sub", "")))
        except ValueError:
            raise AuthenticationError()

        try:
            user = await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error verifying token: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        if user is None:
            raise NotFoundError(resource="user", message="User not found")

        return Identity(user_id=user.id, email=user.email, name=user.name)


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
