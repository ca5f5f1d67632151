"""
Inkwell Backend — Auth Service (Registration & Login)
=======================================================

What:  Orchestrates registration and login against the users table.
How:   Composes the PasswordHasher and TokenService it was constructed with;
       receives the per-request database session on every call.
Who:   /register, /login and /profile route handlers.

Registration Flow:
    username taken? ──yes──▶ DuplicateUsernameError (400)
          │ no
          ▼
    hash password ─▶ INSERT user ─▶ unique violation? ──yes──▶ DuplicateUsernameError
                                          │ no
                                          ▼
                                   created record

Login Flow:
    lookup username ─▶ verify password ─▶ issue token
    Unknown user and wrong password produce the same InvalidCredentialsError.
    An unknown user still pays for one bcrypt verification against a dummy
    hash, so response time does not reveal whether the username exists.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from inkwell.exceptions import (
    DatabaseError,
    DuplicateUsernameError,
    InvalidCredentialsError,
)
from inkwell.models.user import User
from inkwell.schemas.auth import ProfileResponse
from inkwell.services.passwords import PasswordHasher
from inkwell.services.tokens import TokenClaims, TokenService

logger = logging.getLogger(__name__)


class AuthService:
    """
    Registration, login and profile lookups.

    Store errors are wrapped in DatabaseError; the hasher and token service
    raise their own application exceptions, which propagate unchanged.
    bcrypt runs in the threadpool so a hash never stalls the event loop.
    """

    def __init__(self, hasher: PasswordHasher, tokens: TokenService):
        self.hasher = hasher
        self.tokens = tokens
        self._dummy_hash = hasher.hash("inkwell-timing-equalizer")

    async def _find_user(self, db: AsyncSession, username: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.username == username))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user '%s': %s", username, e)
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def register(self, db: AsyncSession, username: str, password: str) -> User:
        """
        Create a user with a hashed password.

        Raises:
            DuplicateUsernameError: username already exists
            ValidationError:        password rejected by the hasher
            DatabaseError:          any other store failure
        """
        if await self._find_user(db, username) is not None:
            logger.info("Registration rejected: username '%s' already taken", username)
            raise DuplicateUsernameError(username)

        password_hash = await run_in_threadpool(self.hasher.hash, password)
        user = User(username=username, password_hash=password_hash)
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same name
            await db.rollback()
            logger.info("Registration rejected by unique constraint: '%s'", username)
            raise DuplicateUsernameError(username)
        except SQLAlchemyError as e:
            logger.error("Database error registering '%s': %s", username, e)
            raise DatabaseError(context={"error_type": type(e).__name__})

        logger.info("User registered: %s (%s)", user.username, user.id)
        return user

    async def login(self, db: AsyncSession, username: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and mint a session token.

        Returns:
            (user, token)

        Raises:
            InvalidCredentialsError: unknown user or wrong password
            TokenSigningError:       the token could not be signed
        """
        user = await self._find_user(db, username)

        if user is None:
            await run_in_threadpool(self.hasher.verify, password, self._dummy_hash)
            logger.info("Login failed for '%s'", username)
            raise InvalidCredentialsError()

        if not await run_in_threadpool(self.hasher.verify, password, user.password_hash):
            logger.info("Login failed for '%s'", username)
            raise InvalidCredentialsError()

        token = self.tokens.issue(username=user.username, user_id=user.id)
        logger.info("User logged in: %s (%s)", user.username, user.id)
        return user, token

    def profile(self, claims: TokenClaims) -> ProfileResponse:
        return ProfileResponse(
            username=claims.username,
            user_id=claims.user_id,
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
        )
