"""Pydantic schemas for registration, login, and session checks.

Learn: These only check JSON shape (strings where strings are expected).
Length and format rules are enforced by projecthub.validation inside the
identity service.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from projecthub.schemas.common import CamelModel


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    username: str
    password: str


class UserRead(CamelModel):
    id: uuid.UUID
    username: str
    email: str
    created_at: Optional[datetime] = None


class LoginData(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead
