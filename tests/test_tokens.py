"""TokenIssuer: issue/verify round trip, expiry boundary, tamper detection."""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from authcore.auth.tokens import TokenIssuer
from authcore.errors import ConfigurationFault, InvalidSignature, TokenExpired

SECRET = "unit-test-secret-9d8c7b6a5f4e3d2c1b0a"
T0 = datetime(2026, 1, 15, 9, 30, 0, tzinfo=timezone.utc)
DAY = timedelta(hours=24)


@pytest.fixture()
def token_issuer():
    return TokenIssuer(SECRET)


@pytest.fixture()
def identity_id():
    return uuid.uuid4()


# ═══════════════════════════════════════════════════════════
# Issue
# ═══════════════════════════════════════════════════════════


def test_issue_sets_24h_window(token_issuer, identity_id):
    issued = token_issuer.issue(identity_id, "alice@example.com", now=T0)
    assert issued.issued_at == T0
    assert issued.expires_at == T0 + DAY
    assert isinstance(issued.token, str) and issued.token.count(".") == 2


def test_token_payload_has_no_password_material(token_issuer, identity_id):
    issued = token_issuer.issue(identity_id, "alice@example.com", now=T0)
    payload = jwt.decode(issued.token, options={"verify_signature": False})
    assert set(payload) == {"sub", "email", "iat", "exp"}
    assert payload["sub"] == str(identity_id)
    assert payload["email"] == "alice@example.com"


def test_empty_secret_is_configuration_fault():
    with pytest.raises(ConfigurationFault):
        TokenIssuer("")


def test_unsupported_algorithm_is_configuration_fault(identity_id):
    with pytest.raises(ConfigurationFault):
        TokenIssuer(SECRET, algorithm="HS999").issue(identity_id, "a@example.com", now=T0)


# ═══════════════════════════════════════════════════════════
# Round trip + expiry
# ═══════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "offset",
    [timedelta(0), timedelta(seconds=1), timedelta(hours=12), DAY - timedelta(seconds=1), DAY - timedelta(microseconds=1)],
)
def test_valid_within_lifetime(token_issuer, identity_id, offset):
    issued = token_issuer.issue(identity_id, "alice@example.com", now=T0)
    claims = token_issuer.verify(issued.token, now=T0 + offset)
    assert claims.subject == str(identity_id)
    assert claims.email == "alice@example.com"
    assert claims.issued_at == T0
    assert claims.expires_at == T0 + DAY


T0_FRACTIONAL = datetime(2026, 1, 15, 9, 30, 0, 900000, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "offset",
    [timedelta(0), timedelta(milliseconds=50), DAY - timedelta(milliseconds=500), DAY - timedelta(microseconds=1)],
)
def test_sub_second_issue_time_keeps_full_window(token_issuer, identity_id, offset):
    issued = token_issuer.issue(identity_id, "alice@example.com", now=T0_FRACTIONAL)
    assert issued.issued_at == T0_FRACTIONAL
    assert issued.expires_at == T0_FRACTIONAL + DAY

    claims = token_issuer.verify(issued.token, now=T0_FRACTIONAL + offset)
    assert claims.issued_at == T0_FRACTIONAL
    assert claims.expires_at == T0_FRACTIONAL + DAY


def test_sub_second_issue_time_expires_exactly_at_lifetime(token_issuer, identity_id):
    issued = token_issuer.issue(identity_id, "alice@example.com", now=T0_FRACTIONAL)
    with pytest.raises(TokenExpired):
        token_issuer.verify(issued.token, now=T0_FRACTIONAL + DAY)


@pytest.mark.parametrize("offset", [DAY, DAY + timedelta(seconds=1), timedelta(days=30)])
def test_expired_at_and_after_lifetime(token_issuer, identity_id, offset):
    issued = token_issuer.issue(identity_id, "alice@example.com", now=T0)
    with pytest.raises(TokenExpired):
        token_issuer.verify(issued.token, now=T0 + offset)


def test_custom_lifetime(identity_id):
    short = TokenIssuer(SECRET, lifetime=timedelta(minutes=5))
    issued = short.issue(identity_id, "a@example.com", now=T0)
    short.verify(issued.token, now=T0 + timedelta(minutes=4))
    with pytest.raises(TokenExpired):
        short.verify(issued.token, now=T0 + timedelta(minutes=5))


def test_naive_now_is_treated_as_utc(token_issuer, identity_id):
    naive = T0.replace(tzinfo=None)
    issued = token_issuer.issue(identity_id, "a@example.com", now=naive)
    assert issued.issued_at == T0
    token_issuer.verify(issued.token, now=naive + timedelta(hours=1))


def test_wall_clock_default(token_issuer, identity_id):
    issued = token_issuer.issue(identity_id, "a@example.com")
    claims = token_issuer.verify(issued.token)
    assert claims.subject == str(identity_id)


# ═══════════════════════════════════════════════════════════
# Signature integrity
# ═══════════════════════════════════════════════════════════


def test_any_character_change_is_rejected(token_issuer, identity_id):
    """Changing any single character → InvalidSignature, never a valid token."""
    token = token_issuer.issue(identity_id, "alice@example.com", now=T0).token
    for i, ch in enumerate(token):
        replacement = "A" if ch != "A" else "B"
        tampered = token[:i] + replacement + token[i + 1:]
        with pytest.raises(InvalidSignature):
            token_issuer.verify(tampered, now=T0)


def test_signature_checked_before_expiry(token_issuer, identity_id):
    """A tampered, expired token reports InvalidSignature, not TokenExpired."""
    token = token_issuer.issue(identity_id, "a@example.com", now=T0).token
    head, payload, sig = token.split(".")
    tampered = f"{head}.{payload}.{sig[:-2]}{'AA' if sig[-2:] != 'AA' else 'BB'}"
    with pytest.raises(InvalidSignature):
        token_issuer.verify(tampered, now=T0 + 2 * DAY)


def test_other_secret_is_rejected(identity_id):
    token = TokenIssuer("some-other-secret-value-123456").issue(identity_id, "a@example.com", now=T0).token
    with pytest.raises(InvalidSignature):
        TokenIssuer(SECRET).verify(token, now=T0)


@pytest.mark.parametrize(
    "garbage",
    ["", "not-a-token", "a.b", "a.b.c.d", "....", "eyJhbGciOiJIUzI1NiJ9..", "é.é.é"],
)
def test_malformed_tokens_are_rejected(token_issuer, garbage):
    with pytest.raises(InvalidSignature):
        token_issuer.verify(garbage, now=T0)


def test_unsigned_token_is_rejected(token_issuer, identity_id):
    unsigned = jwt.encode(
        {"sub": str(identity_id), "email": "a@example.com", "iat": T0, "exp": T0 + DAY},
        key=None,
        algorithm="none",
    )
    with pytest.raises(InvalidSignature):
        token_issuer.verify(unsigned, now=T0)


def test_missing_claims_are_rejected(token_issuer):
    token = jwt.encode({"sub": "x", "exp": T0 + DAY}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidSignature):
        token_issuer.verify(token, now=T0)
