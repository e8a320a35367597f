from typing import Any, Literal

from pydantic import BaseModel, Field

from app.utils.misc import get_utc_iso_now


class PaginationData(BaseModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int


class APIResponse[T](BaseModel):
    """Envelope wrapping every API response.

    On errors ``status`` is ``"error"``, ``message`` describes the failure and
    ``data`` carries machine-readable details, e.g. ``{"reason": "ended_by_time"}``
    when a battle is added to a closed tournament, or the field errors of a
    rejected request.
    """

    status: Literal["success", "error"] = "success"
    data: T | None = None
    message: str | None = None
    timestamp: str = Field(default_factory=get_utc_iso_now)

    pagination: PaginationData | None = None

    @classmethod
    def error(cls, message: str, data: Any = None) -> dict[str, Any]:
        """Serialized error envelope, ready for a ``JSONResponse``."""
        return cls(status="error", message=message, data=data).model_dump()


class PaginatedResponse[T](APIResponse[T]):
    """Envelope for listings, always carrying pagination."""

    data: T | None = None
    pagination: PaginationData  # pyright: ignore[reportGeneralTypeIssues]
