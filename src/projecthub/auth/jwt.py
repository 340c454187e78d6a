"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The token
carries the user id (`sub`) and username, plus `iat`/`exp`. Validity is
decided purely by signature and expiry; there is no server-side
revocation list, so a token outlives its user until something looks the
user up again.

Tokens live for exactly 7 days. The lifetime is not configurable.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from projecthub.errors import TokenExpiredError, TokenInvalidError

TOKEN_LIFETIME_SECONDS = 604800


@dataclass(frozen=True)
class TokenClaims:
    """The identity a token asserts."""

    user_id: str
    username: str


class TokenIssuer:
    """Mints and validates signed access tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        lifetime_seconds: int = TOKEN_LIFETIME_SECONDS,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.lifetime_seconds = lifetime_seconds

    def issue(self, claims: TokenClaims, now: Optional[datetime] = None) -> str:
        """Create a signed token expiring `lifetime_seconds` after `now`."""
        issued_at = now or datetime.now(timezone.utc)
        expires = issued_at + timedelta(seconds=self.lifetime_seconds)
        payload = {
            "sub": claims.user_id,
            "username": claims.username,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires.timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Verify and decode a token.

        Raises TokenExpiredError once `exp` has passed and
        TokenInvalidError for anything else (bad signature, garbage input,
        missing claims).
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(f"Invalid token: {e}")

        username = payload.get("username")
        if not isinstance(username, str):
            raise TokenInvalidError("Invalid token: missing username claim")
        return TokenClaims(user_id=str(payload["sub"]), username=username)
