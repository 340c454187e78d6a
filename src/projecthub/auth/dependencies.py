"""FastAPI auth dependencies — the session gate.

Learn: get_current_user is applied at router level to every protected
router (see projecthub.api). It runs before any handler: no valid bearer
token, no handler. On success the identity is stored on
request.state.user and also returned, so handlers can take it via
Depends(get_current_user) without re-verifying (FastAPI caches the
dependency per request).

Expired and forged tokens both surface as a plain 401; the distinction
only shows up in the logs.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Header, Request

from projecthub.auth.jwt import TokenIssuer
from projecthub.auth.password import PasswordHasher
from projecthub.errors import (
    TokenExpiredError,
    TokenInvalidError,
    UnauthenticatedError,
)

logger = structlog.get_logger()

# request.state attribute the identity is attached under
IDENTITY_STATE_KEY = "user"


@dataclass(frozen=True)
class CurrentIdentity:
    """The authenticated user making the request."""

    user_id: str
    username: str


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> CurrentIdentity:
    """Extract and verify the bearer token (required — 401 otherwise)."""
    token = _bearer_token(authorization)
    if token is None:
        raise UnauthenticatedError()

    try:
        claims = get_token_issuer(request).verify(token)
    except TokenExpiredError:
        logger.info("auth.token_expired", path=request.url.path)
        raise UnauthenticatedError()
    except TokenInvalidError as e:
        logger.info("auth.token_invalid", path=request.url.path, reason=str(e))
        raise UnauthenticatedError()

    identity = CurrentIdentity(user_id=claims.user_id, username=claims.username)
    setattr(request.state, IDENTITY_STATE_KEY, identity)
    return identity
