"""Base schema utilities."""

from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from frontdesk.models.enums import SortOrder

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class TimestampMixin(BaseModel):
    """Mixin for created_at/updated_at timestamps."""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class IDMixin(BaseModel):
    """Mixin for the remote entity id (opaque string)."""

    id: str


class PageQuery(BaseSchema):
    """Pagination and ordering shared by every list query."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort_order: SortOrder = SortOrder.DESC

    def to_params(self) -> dict:
        """Query-string parameters with unset filters dropped."""
        return self.model_dump(mode="json", exclude_none=True)


class Page(BaseModel, Generic[T]):
    """Canonical paginated envelope, whatever the backend named its list field."""

    items: list[T] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10
    total_pages: int = 0

    @property
    def has_items(self) -> bool:
        return len(self.items) > 0
