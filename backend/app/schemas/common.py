"""Shared / generic schemas."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """Standard error envelope returned for every application error."""

    success: bool = False
    error_code: str
    message: str
    details: dict[str, Any] | None = None


class SuccessResponse(BaseModel):
    """Generic success wrapper."""

    success: bool = True
    message: str = "ok"
    data: dict[str, Any] | None = None


class CamelModel(BaseModel):
    """Base for payloads exchanged with the web client in camelCase.

    Accepts either ``quizId`` or ``quiz_id`` on input; FastAPI serialises
    response models by alias, so responses go out as camelCase.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class Page(CamelModel, Generic[T]):
    items: list[T]
    pagination: Pagination


def paginate(items: list, page: int, limit: int, total: int) -> dict:
    return {
        "items": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": (total + limit - 1) // limit if limit else 0,
        },
    }


def reject_nulls(model: BaseModel, names: tuple[str, ...]) -> None:
    """Raise if a PATCH body explicitly sets any of *names* to null."""
    nulls = [n for n in names if n in model.model_fields_set and getattr(model, n) is None]
    if nulls:
        raise ValueError(f"{', '.join(nulls)} cannot be null")
