"""Auth API — registration, login, session verification.

Learn: Routes for user authentication:
- POST /auth/register → create a new user account
- POST /auth/login → username/password → bearer token (valid 7 days)
- GET /auth/verify → confirm the token's user still exists

Register and login are open; verify sits behind the session gate.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_password_hasher,
    get_token_issuer,
)
from projecthub.auth.jwt import TokenIssuer
from projecthub.auth.password import PasswordHasher
from projecthub.db.engine import get_db
from projecthub.schemas.auth import LoginData, LoginRequest, RegisterRequest, UserRead
from projecthub.schemas.common import ApiResponse, ok
from projecthub.services.identity_service import IdentityService
from projecthub.store.sqlalchemy_store import SqlAlchemyStore

router = APIRouter(prefix="/auth")


def _svc(
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> IdentityService:
    return IdentityService(SqlAlchemyStore(db), hasher, tokens)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=ApiResponse[UserRead], status_code=201)
async def register(body: RegisterRequest, svc: IdentityService = Depends(_svc)):
    """Create a new user account."""
    user = await svc.register(body.username, body.email, body.password)
    return ok(user, "Registered successfully")


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=ApiResponse[LoginData])
async def login(body: LoginRequest, svc: IdentityService = Depends(_svc)):
    """Login with username and password → bearer token."""
    result = await svc.login(body.username, body.password)
    return ok(
        {
            "access_token": result.access_token,
            "expires_in": result.expires_in,
            "user": result.user,
        },
        "Login successful",
    )


# ─── Verify ──────────────────────────────────────────────


@router.get("/verify", response_model=ApiResponse[UserRead])
async def verify(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: IdentityService = Depends(_svc),
):
    """Check the current token still belongs to an existing user."""
    user = await svc.verify_session(identity.user_id)
    return ok(user, "Token is valid")
