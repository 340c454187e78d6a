"""Identity service — registration, login, and session verification.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the store. The hasher and token
issuer are injected, so tests can build the service with cheap bcrypt
rounds and a throwaway secret.

Login never says which half of the credentials was wrong: an unknown
username and a bad password raise the same InvalidCredentialsError, and
both pay for one bcrypt check.
"""

import uuid
from dataclasses import dataclass

import structlog

from projecthub.auth.jwt import TokenClaims, TokenIssuer
from projecthub.auth.password import PasswordHasher
from projecthub.errors import (
    DuplicateEmailError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    UserNotFoundError,
)
from projecthub.store.base import PublicUser, Store, UniqueViolationError
from projecthub.validation import validate_email, validate_password, validate_username

logger = structlog.get_logger()


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    expires_in: int
    user: PublicUser


class IdentityService:
    """Business logic for user accounts and credentials."""

    def __init__(self, store: Store, hasher: PasswordHasher, tokens: TokenIssuer):
        self.store = store
        self.hasher = hasher
        self.tokens = tokens

    async def register(self, username: str, email: str, password: str) -> PublicUser:
        """Create a user account.

        Learn: Username uniqueness is checked strictly before email, so a
        request colliding on both reports the username. The store's own
        unique constraints back this up when two registrations race.
        """
        validate_username(username)
        validate_email(email)
        validate_password(password)

        if await self.store.find_user_by_username(username):
            raise DuplicateUsernameError()
        if await self.store.find_user_by_email(email):
            raise DuplicateEmailError()

        try:
            user = await self.store.create_user(
                username=username,
                email=email,
                password_hash=self.hasher.hash(password),
            )
        except UniqueViolationError as e:
            if e.field == "email":
                raise DuplicateEmailError()
            raise DuplicateUsernameError()

        logger.info("identity.registered", user_id=str(user.id), username=username)
        return user.public()

    async def login(self, username: str, password: str) -> LoginResult:
        """Check credentials and issue an access token."""
        user = await self.store.find_user_by_username(username)
        if user is None:
            verified = self.hasher.verify_decoy(password)
        else:
            verified = self.hasher.verify(password, user.password_hash)
        if not verified:
            logger.info("identity.login_failed", username=username)
            raise InvalidCredentialsError()

        token = self.tokens.issue(
            TokenClaims(user_id=str(user.id), username=user.username)
        )
        logger.info("identity.logged_in", user_id=str(user.id))
        return LoginResult(
            access_token=token,
            expires_in=self.tokens.lifetime_seconds,
            user=user.public(),
        )

    async def verify_session(self, user_id: str) -> PublicUser:
        """Confirm the user behind a verified token still exists."""
        try:
            uid = uuid.UUID(str(user_id))
        except ValueError:
            raise UserNotFoundError()

        user = await self.store.find_user_by_id(uid)
        if user is None:
            raise UserNotFoundError()
        return user
