"""Project service — owner-scoped CRUD, listing, and batch import.

Learn: Every operation takes the authenticated owner id first, and every
read or write of an existing project goes through _load_owned(), which
separates "doesn't exist" (404) from "belongs to someone else" (403).

Batch import is sequential on purpose: item i failing never affects item
i+1, and imported_items comes back in input order.
"""

import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

import structlog

from projecthub.errors import (
    BatchTooLargeError,
    ResourceForbiddenError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from projecthub.store.base import (
    ProjectRecord,
    RecordNotFoundError,
    Store,
)
from projecthub.validation import validate_components, validate_project_name

logger = structlog.get_logger()

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
# Keeps (page - 1) * page_size inside a signed 64-bit OFFSET.
MAX_PAGE = 2**31 - 1
DEFAULT_SORT_FIELD = "updated_at"
DEFAULT_SORT_ORDER = "desc"
DEFAULT_BATCH_MAX_ITEMS = 100

# Accepts both the camelCase names used on the wire and snake_case.
_SORT_ALIASES = {
    "name": "name",
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
}


@dataclass(frozen=True)
class Pagination:
    total: int
    page: int
    page_size: int
    total_pages: int


@dataclass(frozen=True)
class ProjectPage:
    items: list[ProjectRecord]
    pagination: Pagination


@dataclass
class BatchImportResult:
    imported_items: list[dict[str, Any]] = field(default_factory=list)
    failed_items: list[Optional[str]] = field(default_factory=list)

    @property
    def imported_count(self) -> int:
        return len(self.imported_items)

    @property
    def failed_count(self) -> int:
        return len(self.failed_items)


def _positive_int(value: Any, default: int) -> int:
    """Parse a query value, falling back to `default` if unusable or < 1."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def resolve_sort(sort_by: Any, order: Any) -> tuple[str, str]:
    """Map user-supplied sort options onto supported ones.

    Unknown fields fall back to updated_at and unknown orders to desc.
    """
    sort_field = DEFAULT_SORT_FIELD
    if isinstance(sort_by, str):
        sort_field = _SORT_ALIASES.get(sort_by, DEFAULT_SORT_FIELD)
    sort_order = order.lower() if isinstance(order, str) else DEFAULT_SORT_ORDER
    if sort_order not in ("asc", "desc"):
        sort_order = DEFAULT_SORT_ORDER
    return sort_field, sort_order


def _parse_id(project_id: Any) -> Optional[uuid.UUID]:
    if isinstance(project_id, uuid.UUID):
        return project_id
    try:
        return uuid.UUID(str(project_id))
    except ValueError:
        return None


class ProjectService:
    """Business logic for projects, always scoped to one owner."""

    def __init__(self, store: Store, batch_max_items: int = DEFAULT_BATCH_MAX_ITEMS):
        self.store = store
        self.batch_max_items = batch_max_items

    async def _load_owned(self, owner_id: uuid.UUID, project_id: Any) -> ProjectRecord:
        pid = _parse_id(project_id)
        project = await self.store.find_project_by_id(pid) if pid else None
        if project is None:
            raise ResourceNotFoundError()
        if project.owner_id != owner_id:
            logger.info(
                "projects.access_denied",
                project_id=str(pid),
                owner_id=str(owner_id),
            )
            raise ResourceForbiddenError()
        return project

    # ─── Create ─────────────────────────────────────────

    async def create(
        self,
        owner_id: uuid.UUID,
        name: Any,
        components: Any = None,
    ) -> ProjectRecord:
        name = validate_project_name(name)
        components = validate_components(components)
        project = await self.store.create_project(
            owner_id=owner_id, name=name, components=components
        )
        logger.info("projects.created", project_id=str(project.id), owner_id=str(owner_id))
        return project

    # ─── Read ───────────────────────────────────────────

    async def list(
        self,
        owner_id: uuid.UUID,
        page: Any = None,
        page_size: Any = None,
        sort_by: Any = None,
        order: Any = None,
    ) -> ProjectPage:
        """List the owner's projects, one page at a time.

        Learn: page_size is clamped to MAX_PAGE_SIZE however large the
        request, and page is capped at MAX_PAGE. A page past the end comes
        back empty without querying for rows. The total and page count
        describe the owner's whole collection, not the returned page.
        """
        page = min(_positive_int(page, DEFAULT_PAGE), MAX_PAGE)
        take = min(_positive_int(page_size, DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)
        sort_field, sort_order = resolve_sort(sort_by, order)

        skip = (page - 1) * take
        total = await self.store.count_projects(owner_id)
        items = []
        if skip < total:
            items = await self.store.list_projects(
                owner_id,
                skip=skip,
                take=take,
                sort_field=sort_field,
                sort_order=sort_order,
            )
        return ProjectPage(
            items=items,
            pagination=Pagination(
                total=total,
                page=page,
                page_size=take,
                total_pages=math.ceil(total / take),
            ),
        )

    async def get(self, owner_id: uuid.UUID, project_id: Any) -> ProjectRecord:
        return await self._load_owned(owner_id, project_id)

    # ─── Update / delete ────────────────────────────────

    async def update(
        self, owner_id: uuid.UUID, project_id: Any, patch: dict[str, Any]
    ) -> ProjectRecord:
        """Apply a partial update. Keys absent from `patch` stay as they were."""
        changes: dict[str, Any] = {}
        if "name" in patch:
            changes["name"] = validate_project_name(patch["name"])
        if "components" in patch:
            if patch["components"] is None:
                raise ValidationFailedError.for_field(
                    "components", "Components must be a list"
                )
            changes["components"] = validate_components(patch["components"])

        project = await self._load_owned(owner_id, project_id)
        try:
            updated = await self.store.update_project(project.id, changes)
        except RecordNotFoundError:
            # Deleted between the ownership check and the write.
            raise ResourceNotFoundError()

        logger.info("projects.updated", project_id=str(project.id), fields=sorted(changes))
        return updated

    async def remove(self, owner_id: uuid.UUID, project_id: Any) -> dict[str, str]:
        project = await self._load_owned(owner_id, project_id)
        try:
            await self.store.delete_project(project.id)
        except RecordNotFoundError:
            raise ResourceNotFoundError()

        logger.info("projects.deleted", project_id=str(project.id))
        return {"id": str(project.id)}

    # ─── Batch import ───────────────────────────────────

    async def batch_import(
        self,
        owner_id: uuid.UUID,
        items: Any,
        max_items: Optional[int] = None,
    ) -> BatchImportResult:
        """Create many projects, tolerating individual failures.

        Learn: The request as a whole is rejected (nothing created) only
        when it isn't a list or is longer than max_items. After that,
        each item either lands in imported_items or has its name recorded
        in failed_items; no per-item error escapes.
        """
        limit = max_items if max_items is not None else self.batch_max_items
        if not isinstance(items, list):
            raise ValidationFailedError.for_field("projects", "Projects must be a list")
        if len(items) > limit:
            raise BatchTooLargeError(
                f"Batch import supports at most {limit} projects",
                errors=[{"field": "projects", "message": f"At most {limit} items allowed"}],
            )

        result = BatchImportResult()
        for index, item in enumerate(items):
            name = item.get("name") if isinstance(item, dict) else None
            try:
                if not isinstance(item, dict):
                    raise ValidationFailedError.for_field(
                        f"projects[{index}]", "Each project must be an object"
                    )
                project = await self.create(owner_id, name, item.get("components"))
            except Exception as e:
                logger.warning(
                    "projects.batch_item_failed",
                    index=index,
                    name=name,
                    error=str(e),
                )
                result.failed_items.append(name)
                continue
            result.imported_items.append({"id": project.id, "name": project.name})

        logger.info(
            "projects.batch_imported",
            owner_id=str(owner_id),
            imported=result.imported_count,
            failed=result.failed_count,
        )
        return result
