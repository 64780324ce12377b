"""
JWT token handling for authentication.

This module provides functionality for:
- Issuing signed access tokens for an identity
- Verifying tokens and rebuilding the identity they carry
"""
import os
import time
from typing import Optional

import jwt
from jwt.exceptions import InvalidSignatureError, PyJWTError
from pydantic import BaseModel

from letsplay.auth.identity import Identity, Role

# JWT Configuration
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "letsplay-development-secret-change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

REQUIRED_CLAIMS = ["sub", "role", "iat", "exp"]


class TokenError(Exception):
    """Base class for token verification failures."""


class ExpiredToken(TokenError):
    """The token's expiry lies in the past."""


class InvalidSignature(TokenError):
    """The token was not signed with our secret."""


class MalformedToken(TokenError):
    """The token cannot be decoded or lacks required claims."""


class Token(BaseModel):
    """Token response model."""
    access_token: str
    token_type: str = "Bearer"
    expires_at: int  # Unix timestamp


class TokenService:
    """
    Issues and verifies HMAC-signed tokens.

    Passing ``now`` makes both operations deterministic.
    """

    def __init__(self, secret_key: str, algorithm: str = ALGORITHM, ttl_seconds: int = ACCESS_TOKEN_EXPIRE_MINUTES * 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    def issue(self, identity: Identity, now: Optional[int] = None) -> Token:
        """
        Create a signed token for an identity.

        Args:
            identity: Identity to embed; issued_at/expires_at are recomputed
            now: Issue time as a Unix timestamp, defaults to the current time

        Returns:
            Token with the encoded string and its expiry
        """
        issued_at = int(time.time()) if now is None else int(now)
        expires_at = issued_at + self.ttl_seconds
        payload = {
            "sub": identity.subject_id,
            "email": identity.email,
            "role": identity.role.value if identity.role else None,
            "iat": issued_at,
            "exp": expires_at,
        }
        encoded = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return Token(access_token=encoded, expires_at=expires_at)

    def verify(self, token: str, now: Optional[int] = None) -> Identity:
        """
        Verify a token and return the identity it carries.

        Raises:
            InvalidSignature: If the signature does not match
            MalformedToken: If the token cannot be parsed
            ExpiredToken: If ``now`` is past the token's expiry
        """
        try:
            # expiry is checked below against ``now``
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": REQUIRED_CLAIMS},
            )
        except InvalidSignatureError as e:
            raise InvalidSignature(str(e)) from e
        except PyJWTError as e:
            raise MalformedToken(str(e)) from e

        try:
            expires_at = int(payload["exp"])
            issued_at = int(payload["iat"])
            role = Role(payload["role"])
        except (ValueError, TypeError) as e:
            raise MalformedToken(str(e)) from e

        subject_id = payload.get("sub")
        if not subject_id:
            raise MalformedToken("Token has no subject")

        current = int(time.time()) if now is None else int(now)
        if current > expires_at:
            raise ExpiredToken("Token has expired")

        return Identity(
            subject_id=str(subject_id),
            email=payload.get("email"),
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
        )


token_service = TokenService(SECRET_KEY)


def create_access_token(user_id: str, email: str, role: Role) -> Token:
    """Issue an access token for a stored user."""
    return token_service.issue(Identity(subject_id=user_id, email=email, role=role))


def verify_token(token: str) -> Identity:
    """Verify a token with the process-wide service."""
    return token_service.verify(token)
