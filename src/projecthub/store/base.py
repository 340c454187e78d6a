"""Store contract — the persistence operations the core depends on.

Learn: Services talk to this interface, never to SQLAlchemy directly.
Records crossing the boundary are plain dataclasses, so nothing outside
the store can trigger a lazy load or depend on session state.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

SORT_FIELDS = ("name", "created_at", "updated_at")
SORT_ORDERS = ("asc", "desc")


class StoreError(Exception):
    """Base class for persistence failures."""


class UniqueViolationError(StoreError):
    """A unique constraint was violated. `field` names the column if known."""

    def __init__(self, field: Optional[str] = None, message: str = ""):
        self.field = field
        super().__init__(message or f"Unique constraint violated on {field or 'unknown'}")


class RecordNotFoundError(StoreError):
    """A write targeted a row that no longer exists."""


@dataclass(frozen=True)
class PublicUser:
    """User projection safe to hand outward (no password hash)."""

    id: uuid.UUID
    username: str
    email: str
    created_at: datetime


@dataclass(frozen=True)
class UserRecord:
    id: uuid.UUID
    username: str
    email: str
    password_hash: str
    created_at: datetime

    def public(self) -> PublicUser:
        return PublicUser(
            id=self.id,
            username=self.username,
            email=self.email,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class ProjectRecord:
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    created_at: datetime
    updated_at: datetime
    components: list[Any] = field(default_factory=list)


class Store(ABC):
    """Capability interface over users and projects."""

    # ─── Users ──────────────────────────────────────────

    @abstractmethod
    async def create_user(
        self, username: str, email: str, password_hash: str
    ) -> UserRecord: ...

    @abstractmethod
    async def find_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def find_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def find_user_by_id(self, user_id: uuid.UUID) -> Optional[PublicUser]: ...

    # ─── Projects ───────────────────────────────────────

    @abstractmethod
    async def create_project(
        self, owner_id: uuid.UUID, name: str, components: list[Any]
    ) -> ProjectRecord: ...

    @abstractmethod
    async def find_project_by_id(
        self, project_id: uuid.UUID
    ) -> Optional[ProjectRecord]: ...

    @abstractmethod
    async def update_project(
        self, project_id: uuid.UUID, changes: dict[str, Any]
    ) -> ProjectRecord:
        """Apply `changes` and refresh updated_at. RecordNotFoundError if gone."""

    @abstractmethod
    async def delete_project(self, project_id: uuid.UUID) -> None:
        """Delete a project. RecordNotFoundError if gone."""

    @abstractmethod
    async def list_projects(
        self,
        owner_id: uuid.UUID,
        skip: int,
        take: int,
        sort_field: str = "updated_at",
        sort_order: str = "desc",
    ) -> list[ProjectRecord]: ...

    @abstractmethod
    async def count_projects(self, owner_id: uuid.UUID) -> int: ...
