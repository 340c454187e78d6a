"""Project API routes.

Learn: Every route here is behind the session gate (applied when the
router is included in projecthub.api). Handlers take the identity,
turn it into the owner id, and delegate to ProjectService, which owns
all ownership checks. Routes only handle HTTP concerns.

Query parameters are read as raw strings on purpose: a non-numeric page
or an unknown sort field falls back to a default instead of failing the
request with a 400.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.auth.dependencies import CurrentIdentity, get_current_user
from projecthub.db.engine import get_db
from projecthub.errors import UnauthenticatedError
from projecthub.schemas.common import ApiResponse, ok
from projecthub.schemas.project import (
    BatchImportRead,
    BatchImportRequest,
    DeletedProject,
    ProjectCreate,
    ProjectList,
    ProjectRead,
    ProjectUpdate,
)
from projecthub.services.project_service import ProjectService
from projecthub.store.sqlalchemy_store import SqlAlchemyStore

router = APIRouter(prefix="/projects")


def _svc(request: Request, db: AsyncSession = Depends(get_db)) -> ProjectService:
    return ProjectService(
        SqlAlchemyStore(db),
        batch_max_items=request.app.state.settings.batch_import_max_items,
    )


def _owner(identity: CurrentIdentity = Depends(get_current_user)) -> uuid.UUID:
    try:
        return uuid.UUID(identity.user_id)
    except ValueError:
        raise UnauthenticatedError()


@router.post("", response_model=ApiResponse[ProjectRead], status_code=201)
async def create_project(
    body: ProjectCreate,
    owner_id: uuid.UUID = Depends(_owner),
    svc: ProjectService = Depends(_svc),
):
    project = await svc.create(owner_id, body.name, body.components)
    return ok(project, "Project created")


@router.get("", response_model=ApiResponse[ProjectList])
async def list_projects(
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: Optional[str] = Query(None),
    owner_id: uuid.UUID = Depends(_owner),
    svc: ProjectService = Depends(_svc),
):
    """List the caller's projects (paginated, max 100 per page)."""
    result = await svc.list(
        owner_id, page=page, page_size=page_size, sort_by=sort_by, order=order
    )
    return ok(
        {"projects": result.items, "pagination": result.pagination},
        "Projects fetched",
    )


@router.post("/batch-import", response_model=ApiResponse[BatchImportRead])
async def batch_import(
    body: BatchImportRequest,
    owner_id: uuid.UUID = Depends(_owner),
    svc: ProjectService = Depends(_svc),
):
    """Create up to 100 projects; failures are counted, not fatal."""
    result = await svc.batch_import(owner_id, body.projects)
    return ok(
        {
            "imported_count": result.imported_count,
            "failed_count": result.failed_count,
            "imported_items": result.imported_items,
            "failed_items": result.failed_items,
        },
        "Batch import finished",
    )


@router.get("/{project_id}", response_model=ApiResponse[ProjectRead])
async def get_project(
    project_id: str,
    owner_id: uuid.UUID = Depends(_owner),
    svc: ProjectService = Depends(_svc),
):
    project = await svc.get(owner_id, project_id)
    return ok(project, "Project fetched")


@router.put("/{project_id}", response_model=ApiResponse[ProjectRead])
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    owner_id: uuid.UUID = Depends(_owner),
    svc: ProjectService = Depends(_svc),
):
    project = await svc.update(owner_id, project_id, body.to_patch())
    return ok(project, "Project updated")


@router.delete("/{project_id}", response_model=ApiResponse[DeletedProject])
async def delete_project(
    project_id: str,
    owner_id: uuid.UUID = Depends(_owner),
    svc: ProjectService = Depends(_svc),
):
    deleted = await svc.remove(owner_id, project_id)
    return ok(deleted, "Project deleted")
