"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
The token carries the identity id (``sub``), the email, and issue/expiry
times, signed with a process-wide secret (HS256 by default).
Nothing is stored server-side: a token is valid until it expires.

There is no revocation: a token stays valid for its full lifetime
even if the account changes afterwards.

``now`` is an explicit parameter on both issue() and verify() so that
expiry behaviour can be checked at any instant, not just the wall clock.
"""

import binascii
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

import jwt
from jwt.utils import base64url_decode, base64url_encode

from authcore.errors import ConfigurationFault, InvalidSignature, TokenExpired

DEFAULT_LIFETIME = timedelta(hours=24)

_REQUIRED_CLAIMS = ["sub", "email", "iat", "exp"]


@dataclass(frozen=True)
class IssuedToken:
    """A freshly minted token plus its validity window."""

    token: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Claims:
    """Identity fields recovered from a verified token."""

    subject: str
    email: str
    issued_at: datetime
    expires_at: datetime


def _utc(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _is_canonical(token: str) -> bool:
    """True if every segment is canonical unpadded base64url.

    Base64 decoders ignore the unused low bits of the final character,
    so two different strings can decode to the same bytes. Rejecting
    non-canonical segments means any character change is detected.
    """
    segments = token.split(".")
    if len(segments) != 3:
        return False
    try:
        return all(
            base64url_encode(base64url_decode(seg)).decode("ascii") == seg
            for seg in segments
        )
    except (binascii.Error, ValueError, UnicodeError):
        return False


class TokenIssuer:
    """Mints and verifies signed, expiring identity tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        lifetime: timedelta = DEFAULT_LIFETIME,
    ):
        if not secret:
            raise ConfigurationFault("signing secret is not configured")
        if lifetime <= timedelta(0):
            raise ConfigurationFault("token lifetime must be positive")
        self._secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime

    def issue(
        self,
        identity_id: Union[uuid.UUID, str],
        email: str,
        now: Optional[datetime] = None,
    ) -> IssuedToken:
        """Create a token for an identity, valid from ``now`` for ``lifetime``."""
        issued_at = _utc(now)
        expires_at = issued_at + self.lifetime
        # NumericDate may be fractional; keep microseconds
        payload = {
            "sub": str(identity_id),
            "email": email,
            "iat": issued_at.timestamp(),
            "exp": expires_at.timestamp(),
        }
        try:
            token = jwt.encode(payload, self._secret, algorithm=self.algorithm)
        except (NotImplementedError, TypeError, ValueError) as e:
            raise ConfigurationFault(f"cannot sign token: {e}") from e
        return IssuedToken(token=token, issued_at=issued_at, expires_at=expires_at)

    def verify(self, token: str, now: Optional[datetime] = None) -> Claims:
        """Verify a token's signature, then its expiry.

        Raises InvalidSignature for anything tampered or malformed,
        TokenExpired once ``now`` reaches the expiry time.
        """
        if not token or not _is_canonical(token):
            raise InvalidSignature()
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                # Expiry is checked below against the caller's ``now``.
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": _REQUIRED_CLAIMS,
                },
            )
            issued_at = datetime.fromtimestamp(float(payload["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(float(payload["exp"]), tz=timezone.utc)
            subject = str(payload["sub"])
            email = str(payload["email"])
        except jwt.InvalidTokenError as e:
            raise InvalidSignature() from e
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise InvalidSignature() from e

        if _utc(now) >= expires_at:
            raise TokenExpired()

        return Claims(
            subject=subject,
            email=email,
            issued_at=issued_at,
            expires_at=expires_at,
        )
