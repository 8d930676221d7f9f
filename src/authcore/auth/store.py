"""Credential store: identities keyed by email, with bcrypt password hashes.

Learn: CredentialStore is the only code that reads or writes the users
table. It is built with an explicitly passed session factory (no global
connection), and every call opens its own AsyncSession.

Rules it enforces:
1. One identity per email. A cheap lookup short-circuits the common
   duplicate case before paying for bcrypt, but the UNIQUE constraint
   is what actually decides concurrent races: an IntegrityError on insert
   becomes DuplicateIdentity.
2. Plaintext passwords are hashed off the event loop (asyncio.to_thread)
   and never persisted. The hash never leaves this module.
3. Unknown email and wrong password are the same InvalidCredentials
   error, and both pay for one bcrypt comparison so timing doesn't
   reveal which case happened.
4. Storage faults and timeouts become StorageUnavailable. No retries.
"""

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Optional, TypeVar

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authcore.auth.password import DEFAULT_ROUNDS, hash_password, verify_password
from authcore.db.models import User, new_uuid
from authcore.errors import (
    DuplicateIdentity,
    InvalidCredentials,
    MissingField,
    StorageUnavailable,
    WeakPassword,
)

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_MIN_PASSWORD_LENGTH = 6
DEFAULT_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class IdentityRecord:
    """A registered identity as seen by callers. Carries no password hash."""

    id: uuid.UUID
    email: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, user: User) -> "IdentityRecord":
        return cls(id=user.id, email=user.email, created_at=user.created_at)


class CredentialStore:
    """Creates and verifies email/password identities."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        rounds: int = DEFAULT_ROUNDS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
    ):
        self._session_factory = session_factory
        self.rounds = rounds
        self.timeout = timeout
        self.min_password_length = min_password_length
        # Timing equalizer for unknown emails, built on first use
        self._dummy_hash: Optional[str] = None

    # ─── Create ─────────────────────────────────────────

    async def create(self, email: Optional[str], password: Optional[str]) -> uuid.UUID:
        """Register a new identity and return its id.

        Raises MissingField, WeakPassword, DuplicateIdentity or
        StorageUnavailable.
        """
        if not email or not password:
            raise MissingField()
        if len(password) < self.min_password_length:
            raise WeakPassword(self.min_password_length)

        if await self._storage(self._exists(email)):
            raise DuplicateIdentity()

        password_hash = await asyncio.to_thread(hash_password, password, self.rounds)
        user_id = await self._storage(self._insert(email, password_hash))
        logger.info("credentials.created", user_id=str(user_id), email=email)
        return user_id

    async def _exists(self, email: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(select(User.id).where(User.email == email))
            return result.first() is not None

    async def _insert(self, email: str, password_hash: str) -> uuid.UUID:
        async with self._session_factory() as session:
            user_id = new_uuid()
            session.add(User(id=user_id, email=email, password_hash=password_hash))
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                # Lost a race with a concurrent create for the same email
                logger.info("credentials.duplicate_on_insert", email=email)
                raise DuplicateIdentity() from e
            return user_id

    # ─── Verify ─────────────────────────────────────────

    async def verify(self, email: Optional[str], password: Optional[str]) -> IdentityRecord:
        """Check an email/password pair and return the matching identity.

        Raises MissingField, InvalidCredentials or StorageUnavailable.
        """
        if not email or not password:
            raise MissingField()

        user = await self._storage(self._find_by_email(email))
        if user is None:
            await asyncio.to_thread(verify_password, password, await self._timing_dummy())
            raise InvalidCredentials()

        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            raise InvalidCredentials()

        return IdentityRecord.from_row(user)

    async def _timing_dummy(self) -> str:
        """Hash with the same cost as a real one, for unknown-email checks."""
        if self._dummy_hash is None:
            self._dummy_hash = await asyncio.to_thread(
                hash_password, "authcore-timing-dummy", self.rounds
            )
        return self._dummy_hash

    async def _find_by_email(self, email: str) -> Optional[User]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(User.email == email))
            return result.scalars().first()

    # ─── Lookup ─────────────────────────────────────────

    async def get(self, identity_id: uuid.UUID) -> Optional[IdentityRecord]:
        """Fetch an identity by id, or None."""
        user = await self._storage(self._find_by_id(identity_id))
        return IdentityRecord.from_row(user) if user else None

    async def _find_by_id(self, identity_id: uuid.UUID) -> Optional[User]:
        async with self._session_factory() as session:
            return await session.get(User, identity_id)

    # ─── Storage guard ──────────────────────────────────

    async def _storage(self, op: Awaitable[T]) -> T:
        """Run a storage coroutine under the timeout, mapping faults."""
        try:
            return await asyncio.wait_for(op, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("storage.timeout", timeout=self.timeout)
            raise StorageUnavailable(f"storage call exceeded {self.timeout}s") from e
        except (SQLAlchemyError, OSError) as e:
            # IntegrityError was already translated inside _insert
            logger.error("storage.unavailable", error=str(e))
            raise StorageUnavailable(str(e)) from e
