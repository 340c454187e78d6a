"""Pydantic schemas for projects.

Learn: Separate "Create"/"Update" schemas (input) from "Read" schemas
(output). ProjectUpdate relies on model_fields_set: only fields the
client actually sent end up in the patch.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from projecthub.schemas.common import CamelModel


class ProjectCreate(BaseModel):
    name: str
    components: Optional[list[Any]] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    components: Optional[list[Any]] = None

    def to_patch(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ProjectRead(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    components: list[Any]
    created_at: datetime
    updated_at: datetime


class PaginationRead(CamelModel):
    total: int
    page: int
    page_size: int
    total_pages: int


class ProjectList(CamelModel):
    projects: list[ProjectRead]
    pagination: PaginationRead


class BatchImportRequest(BaseModel):
    """Items stay loosely typed; each one is validated on its own during import."""

    projects: list[Any]


class ImportedProject(CamelModel):
    id: uuid.UUID
    name: str


class BatchImportRead(CamelModel):
    imported_count: int
    failed_count: int
    imported_items: list[ImportedProject]
    failed_items: list[Any]


class DeletedProject(CamelModel):
    id: uuid.UUID
