"""SQLAlchemy implementation of the Store contract.

Learn: Every write commits on its own. A failed write, whatever the
cause, rolls back only itself, which is what lets batch import keep the
items that succeeded before a failure and go on to the next one. ORM rows are converted to dataclass records right away
so callers never hold an object tied to the session.
"""

import uuid
from typing import Any, Optional

import structlog
from sqlalchemy import asc, delete, desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.db.models import Project, User, utcnow
from projecthub.store.base import (
    SORT_FIELDS,
    ProjectRecord,
    PublicUser,
    RecordNotFoundError,
    Store,
    UniqueViolationError,
    UserRecord,
)

logger = structlog.get_logger()

_SORT_COLUMNS = {
    "name": Project.name,
    "created_at": Project.created_at,
    "updated_at": Project.updated_at,
}

_UPDATABLE_FIELDS = ("name", "components")


def _user_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        username=user.username,
        email=user.email,
        password_hash=user.password_hash,
        created_at=user.created_at,
    )


def _project_record(project: Project) -> ProjectRecord:
    return ProjectRecord(
        id=project.id,
        owner_id=project.owner_id,
        name=project.name,
        components=list(project.components or []),
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


def _violated_field(exc: IntegrityError) -> Optional[str]:
    """Best-effort guess at which unique column an IntegrityError is about."""
    text = str(exc.orig).lower()
    for column in ("username", "email"):
        if column in text:
            return column
    if "projects.id" in text or "projects_pkey" in text:
        return "id"
    return None


class SqlAlchemyStore(Store):
    """Store backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit_new(self, row) -> None:
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            field = _violated_field(e)
            logger.info("store.unique_violation", table=row.__tablename__, field=field)
            raise UniqueViolationError(field, str(e.orig)) from e
        except Exception:
            # Leave the session usable for the caller's next write.
            await self.db.rollback()
            raise

    # ─── Users ──────────────────────────────────────────

    async def create_user(
        self, username: str, email: str, password_hash: str
    ) -> UserRecord:
        user = User(username=username, email=email, password_hash=password_hash)
        await self._commit_new(user)
        return _user_record(user)

    async def find_user_by_username(self, username: str) -> Optional[UserRecord]:
        result = await self.db.execute(select(User).where(User.username == username))
        user = result.scalars().first()
        return _user_record(user) if user else None

    async def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalars().first()
        return _user_record(user) if user else None

    async def find_user_by_id(self, user_id: uuid.UUID) -> Optional[PublicUser]:
        result = await self.db.execute(
            select(User.id, User.username, User.email, User.created_at).where(
                User.id == user_id
            )
        )
        row = result.first()
        if row is None:
            return None
        return PublicUser(
            id=row.id, username=row.username, email=row.email, created_at=row.created_at
        )

    # ─── Projects ───────────────────────────────────────

    async def create_project(
        self, owner_id: uuid.UUID, name: str, components: list[Any]
    ) -> ProjectRecord:
        project = Project(owner_id=owner_id, name=name, components=list(components))
        await self._commit_new(project)
        return _project_record(project)

    async def find_project_by_id(
        self, project_id: uuid.UUID
    ) -> Optional[ProjectRecord]:
        project = await self.db.get(Project, project_id, populate_existing=True)
        return _project_record(project) if project else None

    async def update_project(
        self, project_id: uuid.UUID, changes: dict[str, Any]
    ) -> ProjectRecord:
        project = await self.db.get(Project, project_id, populate_existing=True)
        if project is None:
            raise RecordNotFoundError(f"Project {project_id} not found")

        for key in _UPDATABLE_FIELDS:
            if key in changes:
                setattr(project, key, changes[key])
        project.updated_at = utcnow()

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise UniqueViolationError(_violated_field(e), str(e.orig)) from e
        except Exception:
            await self.db.rollback()
            raise
        return _project_record(project)

    async def delete_project(self, project_id: uuid.UUID) -> None:
        result = await self.db.execute(delete(Project).where(Project.id == project_id))
        if result.rowcount == 0:
            await self.db.rollback()
            raise RecordNotFoundError(f"Project {project_id} not found")
        await self.db.commit()

    async def list_projects(
        self,
        owner_id: uuid.UUID,
        skip: int,
        take: int,
        sort_field: str = "updated_at",
        sort_order: str = "desc",
    ) -> list[ProjectRecord]:
        if sort_field not in SORT_FIELDS:
            sort_field = "updated_at"
        column = _SORT_COLUMNS[sort_field]
        direction = asc if sort_order == "asc" else desc

        result = await self.db.execute(
            select(Project)
            .where(Project.owner_id == owner_id)
            .order_by(direction(column), Project.id)
            .offset(skip)
            .limit(take)
        )
        return [_project_record(p) for p in result.scalars().all()]

    async def count_projects(self, owner_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Project).where(Project.owner_id == owner_id)
        )
        return result.scalar_one()
