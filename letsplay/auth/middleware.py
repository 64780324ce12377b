"""
Authentication middleware.

This module provides:
- The authentication gate run before routing on every request
- Dependencies handing the resulting identity to the endpoints
"""
from fastapi import Request

from letsplay.auth.identity import ANONYMOUS, Identity
from letsplay.auth.jwt import TokenError, verify_token
from letsplay.base_service import BaseService
from letsplay.errors import Unauthenticated, error_response

BEARER_PREFIX = "Bearer "

gate_service = BaseService("auth.gate")


def extract_bearer_token(request: Request):
    """Return the bearer token from the Authorization header, if any."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return None
    return auth_header[len(BEARER_PREFIX):].strip()


async def authentication_gate(request: Request, call_next):
    """
    HTTP middleware resolving the caller identity.

    No bearer token means the request continues as ANONYMOUS. A token that
    fails verification ends the request with 401 before it reaches a route.
    """
    token = extract_bearer_token(request)
    if token is None:
        request.state.identity = ANONYMOUS
        return await call_next(request)

    try:
        identity = verify_token(token)
    except TokenError as e:
        gate_service.logger.warning(
            f"auth.rejected path={request.url.path} reason={e.__class__.__name__}: {e}"
        )
        rejection = Unauthenticated("Invalid or expired token")
        return error_response(rejection.status_code, rejection.message, request.url.path, rejection.headers)

    request.state.identity = identity
    return await call_next(request)


async def get_identity(request: Request) -> Identity:
    """Dependency returning the identity attached by the gate."""
    return getattr(request.state, "identity", ANONYMOUS)


async def require_identity(request: Request) -> Identity:
    """Dependency rejecting anonymous callers."""
    identity = await get_identity(request)
    if identity.is_anonymous:
        raise Unauthenticated()
    return identity
