"""Booking schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import Field, computed_field, model_validator

from frontdesk.schemas.base import BaseSchema, IDMixin, PageQuery, TimestampMixin
from frontdesk.schemas.room import Room
from frontdesk.schemas.user import User
from frontdesk.models.enums import BookingStatus, PaymentStatus


def _lift_embedded(data, ref_field: str, embed_field: str):
    """Move a populated reference (``{"room_id": {...room...}}``) into its embed field."""
    if isinstance(data, dict) and isinstance(data.get(ref_field), dict):
        data = dict(data)
        embedded = data[ref_field]
        data.setdefault(embed_field, embedded)
        data[ref_field] = embedded.get("id") or embedded.get("_id")
    return data


class Booking(BaseSchema, IDMixin, TimestampMixin):
    """Booking as returned by the hotel API."""

    room_id: str
    guest_id: str
    check_in_date: datetime
    check_out_date: datetime
    guests: int = Field(default=1, ge=1)
    special_requests: Optional[str] = None
    total_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    status: BookingStatus = BookingStatus.PENDING
    # Populated relations
    room: Optional[Room] = None
    guest: Optional[User] = None

    @model_validator(mode="before")
    @classmethod
    def lift_relations(cls, data):
        data = _lift_embedded(data, "room_id", "room")
        return _lift_embedded(data, "guest_id", "guest")


class BookingCreate(BaseSchema):
    """Create a new booking on behalf of a guest."""

    room_id: str = Field(..., min_length=1)
    guest_id: str = Field(..., min_length=1)
    check_in_date: datetime
    check_out_date: datetime
    guests: int = Field(default=1, ge=1)
    special_requests: Optional[str] = None

    @model_validator(mode="after")
    def validate_dates(self):
        """Check-out must be after check-in."""
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self


class BookingUpdate(BaseSchema):
    """Staff edit of a booking."""

    check_in_date: Optional[Union[datetime, date]] = None
    check_out_date: Optional[Union[datetime, date]] = None
    guests: Optional[int] = Field(None, ge=1)
    special_requests: Optional[str] = None
    status: Optional[BookingStatus] = None
    total_amount: Optional[Decimal] = Field(None, ge=0)
    paid_amount: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def validate_consistency(self):
        """Dates must stay ordered and payments must not exceed the total."""
        if self.check_in_date is not None and self.check_out_date is not None:
            if _as_date(self.check_out_date) <= _as_date(self.check_in_date):
                raise ValueError("check_out_date must be after check_in_date")
        if self.total_amount is not None and self.paid_amount is not None:
            if self.paid_amount > self.total_amount:
                raise ValueError("paid_amount must not exceed total_amount")
        return self


def _as_date(value: Union[datetime, date]) -> date:
    return value.date() if isinstance(value, datetime) else value


class BookingCancelRequest(BaseSchema):
    """Reason attached to a cancellation."""

    reason: Optional[str] = Field(None, max_length=500)


class BookingCheckInRequest(BaseSchema):
    """Request to check in a booking."""

    actual_check_in_time: Optional[datetime] = None  # Defaults to now on the backend
    notes: Optional[str] = None
    room_condition: Optional[str] = None


class BookingCheckOutRequest(BaseSchema):
    """Request to check out a booking."""

    actual_check_out_time: Optional[datetime] = None  # Defaults to now on the backend
    notes: Optional[str] = None
    room_condition: Optional[str] = None
    incidents: list[str] = Field(default_factory=list)


class BookingSearchQuery(PageQuery):
    """Filters for listing bookings."""

    status: Optional[BookingStatus] = None
    room_id: Optional[str] = None
    guest_id: Optional[str] = None
    check_in_from: Optional[date] = None
    check_in_to: Optional[date] = None
    sort_by: Literal["created_at", "check_in_date", "check_out_date", "total_amount"] = "created_at"


class StatusBadge(BaseSchema):
    """Display label and colour tone for a booking status."""

    label: str
    tone: Literal["yellow", "blue", "green", "gray", "red"]


class PriceQuote(BaseSchema):
    """Price for a stay computed from a room's nightly rate."""

    nights: int
    price_per_night: Decimal
    total: Decimal


class BookingView(BaseSchema):
    """A booking plus everything derived from it for display."""

    booking: Booking
    nights: int
    badge: StatusBadge
    payment_status: PaymentStatus
    outstanding_amount: Decimal
    can_cancel: bool
    cancel_blocked_reason: Optional[str] = None
    allowed_actions: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def is_pending(self) -> bool:
        return self.booking.status == BookingStatus.PENDING

    @computed_field
    @property
    def is_confirmed(self) -> bool:
        return self.booking.status == BookingStatus.CONFIRMED

    @computed_field
    @property
    def is_checked_in(self) -> bool:
        return self.booking.status == BookingStatus.CHECKED_IN

    @computed_field
    @property
    def is_checked_out(self) -> bool:
        return self.booking.status == BookingStatus.CHECKED_OUT

    @computed_field
    @property
    def is_cancelled(self) -> bool:
        return self.booking.status == BookingStatus.CANCELLED

    @computed_field
    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @computed_field
    @property
    def is_partially_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PARTIAL
