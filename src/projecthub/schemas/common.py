"""Shared schema pieces — camelCase base model and the response envelope.

Learn: Python code uses snake_case; the JSON API speaks camelCase.
CamelModel generates the aliases, and FastAPI serializes response models
by alias. populate_by_name lets request bodies use either form.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: {"code": 0, "message": ..., "data": ...}."""

    code: int = 0
    message: str
    data: T


def ok(data, message: str) -> dict:
    return {"code": 0, "message": message, "data": data}
