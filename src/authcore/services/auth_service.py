"""Auth service: registration, login, and token authentication.

Learn: Service layer separates business logic from HTTP routing.
API routes and the CLI call this service; the service calls
CredentialStore and TokenIssuer. Neither of those knows about
the other, so this is where "verify, then issue" lives.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authcore.auth.store import CredentialStore, IdentityRecord
from authcore.auth.tokens import Claims, IssuedToken, TokenIssuer
from authcore.config import Settings
from authcore.errors import InvalidCredentials, TokenExpired

logger = structlog.get_logger()


@dataclass(frozen=True)
class LoginResult:
    """What a successful login hands back: the identity and its token."""

    identity: IdentityRecord
    token: IssuedToken


class AuthService:
    """Composes the credential store and the token issuer."""

    def __init__(self, store: CredentialStore, issuer: TokenIssuer):
        self.store = store
        self.issuer = issuer

    async def register(self, email: Optional[str], password: Optional[str]) -> uuid.UUID:
        user_id = await self.store.create(email, password)
        logger.info("auth.registered", user_id=str(user_id))
        return user_id

    async def login(
        self,
        email: Optional[str],
        password: Optional[str],
        now: Optional[datetime] = None,
    ) -> LoginResult:
        """Verify credentials, then mint a token for the identity."""
        try:
            identity = await self.store.verify(email, password)
        except InvalidCredentials:
            logger.info("auth.login_failed", email=email)
            raise

        token = self.issuer.issue(identity.id, identity.email, now=now)
        logger.info(
            "auth.login",
            user_id=str(identity.id),
            expires_at=token.expires_at.isoformat(),
        )
        return LoginResult(identity=identity, token=token)

    def authenticate(self, token: str, now: Optional[datetime] = None) -> Claims:
        """Verify a bearer token. Stateless: no store lookup."""
        try:
            return self.issuer.verify(token, now=now)
        except TokenExpired:
            logger.info("auth.token_expired")
            raise


def build_auth_service(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> AuthService:
    """Wire store + issuer from Settings.

    Raises ConfigurationFault if the signing secret is missing.
    """
    store = CredentialStore(
        session_factory,
        rounds=settings.bcrypt_rounds,
        timeout=settings.storage_timeout_seconds,
        min_password_length=settings.password_min_length,
    )
    return AuthService(store, build_token_issuer(settings))


def build_token_issuer(settings: Settings) -> TokenIssuer:
    return TokenIssuer(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        lifetime=timedelta(hours=settings.token_lifetime_hours),
    )
