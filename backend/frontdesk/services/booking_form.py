"""Guest booking form: validation and conversion to a create payload."""

from datetime import date, datetime, time, timezone
from typing import Optional

from pydantic import Field

from frontdesk.schemas.base import BaseSchema
from frontdesk.schemas.booking import BookingCreate
from frontdesk.schemas.room import Room

CHECK_IN_TIME = time(14, 0, tzinfo=timezone.utc)
CHECK_OUT_TIME = time(11, 0, tzinfo=timezone.utc)


class BookingForm(BaseSchema):
    """Raw booking form input. Every field may be missing; validation reports why."""

    room_id: Optional[str] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    guests: int = 1
    special_requests: Optional[str] = Field(None, max_length=1000)


class BookingFormError(Exception):
    """Submission blocked by one or more field errors."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{field}: {message}" for field, message in errors.items()))


def validate_booking_form(
    form: BookingForm,
    room: Optional[Room],
    today: Optional[date] = None,
) -> dict[str, str]:
    """Check the form and return a field -> message map (empty when valid).

    Capacity is checked only when the selected room is known.
    """
    today = today or date.today()
    errors: dict[str, str] = {}

    if not form.room_id:
        errors["room"] = "Please select a room"

    if not form.check_in_date:
        errors["check_in_date"] = "Check-in date is required"
    elif form.check_in_date < today:
        errors["check_in_date"] = "Check-in date cannot be in the past"

    if not form.check_out_date:
        errors["check_out_date"] = "Check-out date is required"
    elif form.check_in_date and form.check_out_date <= form.check_in_date:
        errors["check_out_date"] = "Check-out date must be after check-in date"

    if form.guests < 1:
        errors["guests"] = "At least 1 guest is required"
    elif room is not None and form.guests > room.capacity:
        errors["guests"] = f"This room can only accommodate {room.capacity} guest(s)"

    return errors


def build_create_payload(form: BookingForm, guest_id: str) -> BookingCreate:
    """Turn a validated form into the API payload.

    Check-in is at 14:00 UTC and check-out at 11:00 UTC on the chosen days.
    """
    return BookingCreate(
        room_id=form.room_id,
        guest_id=guest_id,
        check_in_date=datetime.combine(form.check_in_date, CHECK_IN_TIME),
        check_out_date=datetime.combine(form.check_out_date, CHECK_OUT_TIME),
        guests=form.guests,
        special_requests=form.special_requests or None,
    )
