"""Room schemas."""

import json
from datetime import date
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator

from frontdesk.schemas.base import BaseSchema, IDMixin, PageQuery, TimestampMixin
from frontdesk.models.enums import RoomStatus, RoomType


def _parse_string_list(value):
    """Accept a JSON-encoded list (multipart form style) as well as a plain list."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return []
        if value.startswith("["):
            return json.loads(value)
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class Room(BaseSchema, IDMixin, TimestampMixin):
    """Room as returned by the hotel API."""

    room_number: str
    type: RoomType
    capacity: int = Field(..., ge=1)
    price_per_night: Decimal = Field(..., ge=0)
    status: RoomStatus = RoomStatus.AVAILABLE
    floor: Optional[int] = None
    size_sqm: Optional[float] = None
    description: Optional[str] = None
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)

    @field_validator("amenities", "images", mode="before")
    @classmethod
    def parse_lists(cls, value):
        return _parse_string_list(value)

    @field_validator("room_number", mode="before")
    @classmethod
    def coerce_room_number(cls, value):
        return str(value) if value is not None else value


class RoomCreate(BaseSchema):
    """Create a new room."""

    room_number: str = Field(..., min_length=1, max_length=20)
    type: RoomType
    capacity: int = Field(..., ge=1, le=20)
    price_per_night: Decimal = Field(..., gt=0)
    status: RoomStatus = RoomStatus.AVAILABLE
    floor: Optional[int] = Field(None, ge=0)
    size_sqm: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    amenities: list[str] = Field(default_factory=list)

    @field_validator("amenities", mode="before")
    @classmethod
    def parse_amenities(cls, value):
        return _parse_string_list(value)


class RoomUpdate(BaseSchema):
    """Update room. Room number is immutable once created."""

    type: Optional[RoomType] = None
    status: Optional[RoomStatus] = None
    capacity: Optional[int] = Field(None, ge=1, le=20)
    price_per_night: Optional[Decimal] = Field(None, gt=0)
    floor: Optional[int] = Field(None, ge=0)
    size_sqm: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    amenities: Optional[list[str]] = None

    @field_validator("amenities", mode="before")
    @classmethod
    def parse_amenities(cls, value):
        return None if value is None else _parse_string_list(value)


class RoomSearchQuery(PageQuery):
    """Filters for listing rooms."""

    type: Optional[RoomType] = None
    status: Optional[RoomStatus] = None
    min_capacity: Optional[int] = Field(None, ge=1)
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    floor: Optional[int] = None
    search: Optional[str] = None
    amenities: Optional[list[str]] = None
    sort_by: Literal["room_number", "price_per_night", "capacity", "created_at"] = "room_number"

    @model_validator(mode="after")
    def validate_price_range(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self


class RoomAvailabilityQuery(BaseSchema):
    """Check which rooms are free for a date range."""

    check_in_date: date
    check_out_date: date
    guests: Optional[int] = Field(None, ge=1)
    type: Optional[RoomType] = None

    @model_validator(mode="after")
    def validate_dates(self):
        """Check-out must be after check-in."""
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self


class RoomAvailability(BaseSchema):
    """Availability of one room for a queried range."""

    room_id: str
    is_available: bool
    room: Optional[Room] = None


class RoomBulkStatusUpdate(BaseSchema):
    """Set the same housekeeping status on several rooms."""

    room_ids: list[str] = Field(..., min_length=1)
    status: RoomStatus


class RoomCard(BaseSchema):
    """Listing card projection of a room for the guest site."""

    id: str
    title: str
    address: str
    price: str
    images: list[str]
    category: Literal["rooms", "villas", "flats"]
    beds: int
    is_featured: bool
