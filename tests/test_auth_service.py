"""AuthService: register → login → authenticate, without HTTP."""

from datetime import datetime, timedelta, timezone

import pytest

from authcore.errors import ConfigurationFault, InvalidCredentials, InvalidSignature, TokenExpired
from authcore.services.auth_service import build_auth_service


@pytest.mark.asyncio
async def test_login_token_asserts_registered_identity(auth_service):
    user_id = await auth_service.register("alice@example.com", "secret1")

    result = await auth_service.login("alice@example.com", "secret1")
    assert result.identity.id == user_id
    assert result.token.expires_at - result.token.issued_at == timedelta(hours=24)

    claims = auth_service.authenticate(result.token.token)
    assert claims.subject == str(user_id)
    assert claims.email == "alice@example.com"


@pytest.mark.asyncio
async def test_login_wrong_password(auth_service):
    await auth_service.register("alice@example.com", "secret1")
    with pytest.raises(InvalidCredentials):
        await auth_service.login("alice@example.com", "wrongpass")


@pytest.mark.asyncio
async def test_token_outlives_nothing_but_its_lifetime(auth_service):
    """Tokens are stateless: validity depends only on signature and clock."""
    await auth_service.register("alice@example.com", "secret1")
    t0 = datetime(2026, 3, 1, tzinfo=timezone.utc)
    result = await auth_service.login("alice@example.com", "secret1", now=t0)

    auth_service.authenticate(result.token.token, now=t0 + timedelta(hours=23))
    with pytest.raises(TokenExpired):
        auth_service.authenticate(result.token.token, now=t0 + timedelta(hours=24))


def test_authenticate_garbage(auth_service):
    with pytest.raises(InvalidSignature):
        auth_service.authenticate("garbage")


def test_lifetime_comes_from_settings(settings, session_factory):
    service = build_auth_service(
        settings.model_copy(update={"token_lifetime_hours": 1}), session_factory
    )
    assert service.issuer.lifetime == timedelta(hours=1)


def test_missing_secret_is_fatal(settings, session_factory):
    with pytest.raises(ConfigurationFault):
        build_auth_service(settings.model_copy(update={"jwt_secret": ""}), session_factory)
