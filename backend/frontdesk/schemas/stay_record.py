"""Stay record schemas (physical occupancy, distinct from the reservation)."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field, model_validator

from frontdesk.schemas.base import BaseSchema, IDMixin, PageQuery, TimestampMixin
from frontdesk.schemas.booking import Booking
from frontdesk.models.enums import StayRecordStatus


class AdditionalCharge(BaseSchema):
    """Incidental charge recorded during a stay (minibar, damage, ...)."""

    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., ge=0)


class StayRecord(BaseSchema, IDMixin, TimestampMixin):
    """Stay record as returned by the hotel API."""

    booking_id: str
    actual_check_in_time: Optional[datetime] = None
    actual_check_out_time: Optional[datetime] = None
    notes: Optional[str] = None
    room_condition: Optional[str] = None
    amenities_used: list[str] = Field(default_factory=list)
    incidents: list[str] = Field(default_factory=list)
    additional_charges: list[AdditionalCharge] = Field(default_factory=list)
    status: Optional[StayRecordStatus] = None
    booking: Optional[Booking] = None

    @model_validator(mode="before")
    @classmethod
    def lift_booking(cls, data):
        if isinstance(data, dict) and isinstance(data.get("booking_id"), dict):
            data = dict(data)
            embedded = data["booking_id"]
            data.setdefault("booking", embedded)
            data["booking_id"] = embedded.get("id") or embedded.get("_id")
        return data

    @property
    def is_active(self) -> bool:
        """Guest is physically in the room."""
        return self.actual_check_in_time is not None and self.actual_check_out_time is None

    @property
    def charges_total(self) -> Decimal:
        return sum((charge.amount for charge in self.additional_charges), Decimal("0"))


class StayRecordCreate(BaseSchema):
    """Open a stay record at physical check-in."""

    booking_id: str = Field(..., min_length=1)
    actual_check_in_time: Optional[datetime] = None
    notes: Optional[str] = None
    room_condition: Optional[str] = None
    amenities_used: list[str] = Field(default_factory=list)
    incidents: list[str] = Field(default_factory=list)


class StayRecordUpdate(BaseSchema):
    """Update stay record annotations."""

    actual_check_in_time: Optional[datetime] = None
    actual_check_out_time: Optional[datetime] = None
    notes: Optional[str] = None
    room_condition: Optional[str] = None
    amenities_used: Optional[list[str]] = None
    incidents: Optional[list[str]] = None
    additional_charges: Optional[list[AdditionalCharge]] = None

    @model_validator(mode="after")
    def validate_times(self):
        if self.actual_check_in_time and self.actual_check_out_time:
            if self.actual_check_out_time < self.actual_check_in_time:
                raise ValueError("actual_check_out_time must not precede actual_check_in_time")
        return self


class StayRecordCheckOut(BaseSchema):
    """Close a stay record at physical check-out."""

    actual_check_out_time: Optional[datetime] = None
    notes: Optional[str] = None
    room_condition: Optional[str] = None
    incidents: list[str] = Field(default_factory=list)


class StayRecordSearchQuery(PageQuery):
    """Filters for listing stay records."""

    booking_id: Optional[str] = None
    guest_id: Optional[str] = None
    room_id: Optional[str] = None
    check_in_date_from: Optional[date] = None
    check_in_date_to: Optional[date] = None
    check_out_date_from: Optional[date] = None
    check_out_date_to: Optional[date] = None
    has_incidents: Optional[bool] = None
    sort_by: Literal["check_in_time", "check_out_time", "created_at"] = "created_at"


class StayRecordStats(BaseSchema):
    """Occupancy statistics overview."""

    total_stay_records: int = 0
    active_stays: int = 0
    completed_stays: int = 0
    check_ins_today: int = 0
    check_outs_today: int = 0
    average_stay_duration: float = 0
    total_revenue: Decimal = Decimal("0")
