"""Error kinds raised by the credential & session core.

Learn: Every error carries a stable, human-readable ``message`` that is
safe to show to the caller, and the HTTP status the request layer should
answer with. Infrastructure faults keep their internal ``detail`` for
logging only. It never reaches the response body.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for all core errors."""

    status_code: int = 500
    message: str = "Server error"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ─── Validation outcomes (expected, returned as-is) ─────


class MissingField(AuthError):
    """Email or password was empty or absent."""

    status_code = 400
    message = "Email and password are required"


class WeakPassword(AuthError):
    """Password is shorter than the configured minimum."""

    status_code = 400

    def __init__(self, min_length: int):
        self.min_length = min_length
        super().__init__(f"Password must be at least {min_length} characters")


class DuplicateIdentity(AuthError):
    """An identity with this email already exists."""

    status_code = 400
    message = "User already exists"


class InvalidCredentials(AuthError):
    """Unknown email or wrong password. The two cases are indistinguishable."""

    status_code = 401
    message = "Invalid credentials"


class InvalidSignature(AuthError):
    """Token is malformed or its signature does not verify."""

    status_code = 401
    message = "Invalid token"


class TokenExpired(AuthError):
    """Token signature is fine but it is past its expiry."""

    status_code = 401
    message = "Token has expired"


# ─── Infrastructure faults (logged, surfaced generically) ─────


class InfrastructureFault(AuthError):
    """Fault outside the caller's control. ``detail`` is for logs only."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__()


class StorageUnavailable(InfrastructureFault):
    """The durable store failed or timed out."""

    message = "Database error"


class ConfigurationFault(InfrastructureFault):
    """The process is misconfigured (e.g. no signing secret)."""

    message = "Server error"
