"""
Test cases for token issuing and verification.
"""
import jwt
import pytest

from letsplay.auth.identity import Identity, Role
from letsplay.auth.jwt import (
    TokenService, ExpiredToken, InvalidSignature, MalformedToken,
    create_access_token, verify_token,
)

SECRET = "unit-test-secret-that-is-long-enough-for-hs256"
NOW = 1_700_000_000

IDENTITY = Identity(subject_id="user-1", email="user1@example.com", role=Role.USER)


@pytest.fixture
def service():
    return TokenService(SECRET, ttl_seconds=3600)


def test_issue_and_verify(service):
    token = service.issue(IDENTITY, now=NOW)
    assert token.token_type == "Bearer"
    assert token.expires_at == NOW + 3600

    identity = service.verify(token.access_token, now=NOW + 10)
    assert identity.subject_id == "user-1"
    assert identity.email == "user1@example.com"
    assert identity.role == Role.USER
    assert identity.issued_at == NOW
    assert identity.expires_at == NOW + 3600


def test_issue_is_deterministic(service):
    first = service.issue(IDENTITY, now=NOW)
    second = service.issue(IDENTITY, now=NOW)
    assert first.access_token == second.access_token


def test_token_valid_until_expiry(service):
    token = service.issue(IDENTITY, now=NOW)
    assert service.verify(token.access_token, now=NOW + 3600).subject_id == "user-1"


def test_expired_token(service):
    token = service.issue(IDENTITY, now=NOW)
    with pytest.raises(ExpiredToken):
        service.verify(token.access_token, now=NOW + 3601)


def test_invalid_signature(service):
    token = TokenService("another-secret-that-is-also-long-enough").issue(IDENTITY, now=NOW)
    with pytest.raises(InvalidSignature):
        service.verify(token.access_token, now=NOW)


def test_tampered_payload_fails_signature(service):
    token = service.issue(IDENTITY, now=NOW).access_token
    forged = jwt.encode(
        {"sub": "user-1", "email": "user1@example.com", "role": "ADMIN", "iat": NOW, "exp": NOW + 3600},
        "attacker-secret-that-is-long-enough-too",
        algorithm="HS256",
    )
    header, _, signature = token.split(".")
    _, payload, _ = forged.split(".")
    with pytest.raises(InvalidSignature):
        service.verify(f"{header}.{payload}.{signature}", now=NOW)


@pytest.mark.parametrize("raw", ["", "not-a-token", "a.b.c", "Bearer x.y"])
def test_malformed_token(service, raw):
    with pytest.raises(MalformedToken):
        service.verify(raw, now=NOW)


def test_missing_claims_is_malformed(service):
    token = jwt.encode({"sub": "user-1", "iat": NOW, "exp": NOW + 60}, SECRET, algorithm="HS256")
    with pytest.raises(MalformedToken):
        service.verify(token, now=NOW)


def test_unknown_role_is_malformed(service):
    token = jwt.encode(
        {"sub": "user-1", "role": "ROOT", "iat": NOW, "exp": NOW + 60}, SECRET, algorithm="HS256"
    )
    with pytest.raises(MalformedToken):
        service.verify(token, now=NOW)


def test_module_helpers_round_trip():
    token = create_access_token("user-9", "user9@example.com", Role.ADMIN)
    identity = verify_token(token.access_token)
    assert identity.subject_id == "user-9"
    assert identity.is_admin
