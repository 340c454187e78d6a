"""Persistence layer — abstract Store contract plus the SQLAlchemy implementation."""

from projecthub.store.base import (
    ProjectRecord,
    PublicUser,
    RecordNotFoundError,
    Store,
    StoreError,
    UniqueViolationError,
    UserRecord,
)

__all__ = [
    "ProjectRecord",
    "PublicUser",
    "RecordNotFoundError",
    "Store",
    "StoreError",
    "UniqueViolationError",
    "UserRecord",
]
