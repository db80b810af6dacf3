"""Guest booking form validation."""

from datetime import date, datetime, timezone

from frontdesk.schemas.room import Room
from frontdesk.services.booking_form import BookingForm, build_create_payload, validate_booking_form

from conftest import make_room

TODAY = date(2024, 1, 1)


def valid_form(**overrides) -> BookingForm:
    data = {
        "room_id": "r-101",
        "check_in_date": date(2024, 1, 1),
        "check_out_date": date(2024, 1, 4),
        "guests": 2,
    }
    data.update(overrides)
    return BookingForm(**data)


class TestValidateBookingForm:
    def test_valid_form_has_no_errors(self):
        room = Room.model_validate(make_room())
        assert validate_booking_form(valid_form(), room, today=TODAY) == {}

    def test_capacity_exceeded(self):
        room = Room.model_validate(make_room(capacity=2))
        errors = validate_booking_form(valid_form(guests=3), room, today=TODAY)
        assert errors == {"guests": "This room can only accommodate 2 guest(s)"}

    def test_capacity_skipped_without_room(self):
        assert validate_booking_form(valid_form(guests=9), None, today=TODAY) == {}

    def test_missing_fields(self):
        errors = validate_booking_form(BookingForm(guests=0), None, today=TODAY)
        assert errors == {
            "room": "Please select a room",
            "check_in_date": "Check-in date is required",
            "check_out_date": "Check-out date is required",
            "guests": "At least 1 guest is required",
        }

    def test_check_in_in_the_past(self):
        errors = validate_booking_form(
            valid_form(check_in_date=date(2023, 12, 31)), None, today=TODAY
        )
        assert errors == {"check_in_date": "Check-in date cannot be in the past"}

    def test_check_out_must_follow_check_in(self):
        form = valid_form(check_out_date=date(2024, 1, 1))
        errors = validate_booking_form(form, None, today=TODAY)
        assert errors == {"check_out_date": "Check-out date must be after check-in date"}


class TestCreatePayload:
    def test_fixed_check_in_and_check_out_times(self):
        payload = build_create_payload(valid_form(special_requests="  "), guest_id="u-guest")
        assert payload.check_in_date == datetime(2024, 1, 1, 14, 0, tzinfo=timezone.utc)
        assert payload.check_out_date == datetime(2024, 1, 4, 11, 0, tzinfo=timezone.utc)
        assert payload.guest_id == "u-guest"
        assert payload.special_requests is None
