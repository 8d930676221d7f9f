"""Auth API: registration, login, current identity.

Learn: Routes are thin. They unpack the body, call AuthService, and
shape the response. Every failure is an AuthError raised by the core;
the handler registered in main.py renders it as {"message": ...}
with the error's status code.

- POST /register → create an identity (201)
- POST /login → email/password → JWT (200)
- GET /me → verify bearer token → claims (200)
"""

from fastapi import APIRouter, Depends

from authcore.auth.dependencies import get_auth_service, get_current_identity
from authcore.auth.tokens import Claims
from authcore.schemas.auth import (
    Credentials,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RegisterResponse,
    Registration,
    UserRead,
)
from authcore.services.auth_service import AuthService

router = APIRouter()

_errors = {
    400: {"model": MessageResponse},
    401: {"model": MessageResponse},
    500: {"model": MessageResponse},
}


# ─── Register ────────────────────────────────────────────


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=201,
    responses={400: _errors[400], 500: _errors[500]},
)
async def register(
    body: Registration,
    service: AuthService = Depends(get_auth_service),
):
    """Create a new identity."""
    user_id = await service.register(body.email, body.password)
    return RegisterResponse(user_id=user_id)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=LoginResponse, responses=_errors)
async def login(
    body: Credentials,
    service: AuthService = Depends(get_auth_service),
):
    """Login with email and password → JWT."""
    result = await service.login(body.email, body.password)
    return LoginResponse(
        token=result.token.token,
        user=UserRead(id=result.identity.id, email=result.identity.email),
    )


# ─── Current identity ───────────────────────────────────


@router.get("/me", response_model=MeResponse, responses={401: _errors[401]})
async def get_me(claims: Claims = Depends(get_current_identity)):
    """Return the identity asserted by the bearer token."""
    return MeResponse(
        id=claims.subject,
        email=claims.email,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
    )
