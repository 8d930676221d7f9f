"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. The AuthService
is built once in the app lifespan and lives on app.state; routes pull
it from there instead of importing a global.

get_current_identity is the "hard" bearer-token check: it raises the
core's InvalidSignature / TokenExpired, which the app's exception
handler turns into a 401 with a WWW-Authenticate header.
"""

from typing import Optional

from fastapi import Depends, Header, Request

from authcore.auth.tokens import Claims
from authcore.errors import ConfigurationFault, InvalidSignature
from authcore.services.auth_service import AuthService


def get_auth_service(request: Request) -> AuthService:
    """Return the AuthService wired up at startup."""
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise ConfigurationFault("auth service not initialised")
    return service


def get_current_identity(
    authorization: Optional[str] = Header(None),
    service: AuthService = Depends(get_auth_service),
) -> Claims:
    """Verify the Authorization: Bearer <token> header."""
    if not authorization:
        raise InvalidSignature("Authentication required")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise InvalidSignature("Authentication required")

    return service.authenticate(token.strip())
