"""Resource services against the in-memory hotel API."""

from datetime import date
from decimal import Decimal

import httpx
import pytest

from frontdesk.core.cache import CacheKey, Resource
from frontdesk.models.enums import BookingStatus, PaymentStatus
from frontdesk.schemas.booking import Booking, BookingUpdate
from frontdesk.schemas.room import Room, RoomAvailabilityQuery
from frontdesk.schemas.stay_record import StayRecordSearchQuery
from frontdesk.schemas.user import LoginRequest, UserProfileUpdate
from frontdesk.services.booking_form import BookingForm, BookingFormError
from frontdesk.services.bookings import BookingService, describe_booking
from frontdesk.services.lifecycle import BookingTransitionError
from frontdesk.services.rooms import RoomService, to_room_card
from frontdesk.services.stay_records import StayRecordService
from frontdesk.services.users import UserService

from conftest import make_booking, make_room, make_user, request_json


class StatefulBookings:
    """Just enough booking endpoints to walk one booking through its lifecycle."""

    def __init__(self, fake_api, **booking):
        self.booking = make_booking(**booking)
        fake_api.handle("GET", "/bookings/b-1", self.get)
        fake_api.handle("POST", "/bookings/b-1/cancel", self.move("cancelled"))
        fake_api.handle("POST", "/bookings/b-1/check-in", self.move("checked_in"))
        fake_api.handle("POST", "/bookings/b-1/check-out", self.move("checked_out"))
        fake_api.handle("PUT", "/bookings/b-1", self.put)

    def get(self, request):
        return httpx.Response(200, json={"booking": self.booking})

    def move(self, status):
        def handler(request):
            self.booking = {**self.booking, "status": status}
            return httpx.Response(200, json={"message": "ok", "booking": self.booking})

        return handler

    def put(self, request):
        self.booking = {**self.booking, **request_json(request)}
        return httpx.Response(200, json={"booking": self.booking})


@pytest.fixture
def bookings(api_client, cache) -> BookingService:
    return BookingService(api_client, cache)


class TestBookingLifecycle:
    async def test_guest_cancel_then_check_in_is_rejected(self, fake_api, bookings):
        StatefulBookings(fake_api, status="pending")

        cancelled = await bookings.cancel("b-1")
        assert cancelled.status == BookingStatus.CANCELLED

        with pytest.raises(BookingTransitionError):
            await bookings.check_in("b-1")
        assert fake_api.calls("POST", "/bookings/b-1/check-in") == []

    async def test_staff_cancel_after_check_in_is_rejected(self, fake_api, bookings):
        state = StatefulBookings(fake_api, status="checked_in")

        with pytest.raises(BookingTransitionError):
            await bookings.cancel("b-1")

        assert state.booking["status"] == "checked_in"
        assert fake_api.calls("POST", "/bookings/b-1/cancel") == []

    async def test_full_stay(self, fake_api, bookings):
        StatefulBookings(fake_api, status="pending")

        assert (await bookings.confirm("b-1")).status == BookingStatus.CONFIRMED
        assert (await bookings.check_in("b-1")).status == BookingStatus.CHECKED_IN
        assert (await bookings.check_out("b-1")).status == BookingStatus.CHECKED_OUT

    async def test_cancel_sends_reason(self, fake_api, bookings):
        from frontdesk.schemas.booking import BookingCancelRequest

        StatefulBookings(fake_api, status="confirmed")
        await bookings.cancel("b-1", BookingCancelRequest(reason="Change of plans"))
        sent = fake_api.calls("POST", "/bookings/b-1/cancel")[0]
        assert request_json(sent) == {"reason": "Change of plans"}

    async def test_action_invalidates_cached_detail(self, fake_api, bookings, cache):
        StatefulBookings(fake_api, status="pending")

        before = await bookings.get_booking("b-1")
        assert before.data.status == BookingStatus.PENDING
        await bookings.cancel("b-1")

        assert CacheKey.detail(Resource.BOOKINGS, "b-1") not in cache
        after = await bookings.get_booking("b-1")
        assert after.data.status == BookingStatus.CANCELLED


class TestBookingUpdate:
    async def test_status_edit_must_follow_one_transition(self, fake_api, bookings):
        StatefulBookings(fake_api, status="pending")

        with pytest.raises(BookingTransitionError):
            await bookings.update_booking("b-1", BookingUpdate(status=BookingStatus.CHECKED_OUT))
        assert fake_api.calls("PUT", "/bookings/b-1") == []

    async def test_only_changed_fields_are_sent(self, fake_api, bookings):
        StatefulBookings(fake_api, status="pending")

        updated = await bookings.update_booking("b-1", BookingUpdate(guests=1, status=BookingStatus.CONFIRMED))

        assert request_json(fake_api.calls("PUT", "/bookings/b-1")[0]) == {"guests": 1, "status": "confirmed"}
        assert updated.status == BookingStatus.CONFIRMED

    async def test_overpayment_against_stored_total_is_rejected(self, fake_api, bookings):
        StatefulBookings(fake_api, status="confirmed", total_amount=300)

        with pytest.raises(BookingFormError) as exc_info:
            await bookings.update_booking("b-1", BookingUpdate(paid_amount=Decimal("350")))
        assert "paid_amount" in exc_info.value.errors

    async def test_lowering_total_below_stored_paid_is_rejected(self, fake_api, bookings):
        StatefulBookings(fake_api, status="confirmed", total_amount=300, paid_amount=300)

        with pytest.raises(BookingFormError) as exc_info:
            await bookings.update_booking("b-1", BookingUpdate(total_amount=Decimal("100")))

        assert "total_amount" in exc_info.value.errors
        assert fake_api.calls("PUT", "/bookings/b-1") == []

    async def test_raising_total_above_stored_paid_is_sent(self, fake_api, bookings):
        StatefulBookings(fake_api, status="confirmed", total_amount=300, paid_amount=300)

        updated = await bookings.update_booking("b-1", BookingUpdate(total_amount=Decimal("400")))

        assert updated.total_amount == Decimal("400")

    async def test_status_edit_to_checked_in_refreshes_stay_records(self, fake_api, bookings, cache):
        StatefulBookings(fake_api, status="confirmed")

        async def load_stays():
            return "stays"

        stays_key = CacheKey.list(Resource.STAY_RECORDS)
        await cache.fetch(stays_key, load_stays)
        await bookings.update_booking("b-1", BookingUpdate(status=BookingStatus.CHECKED_IN))

        assert stays_key not in cache

    async def test_plain_edit_keeps_stay_records(self, fake_api, bookings, cache):
        StatefulBookings(fake_api, status="confirmed")

        async def load_stays():
            return "stays"

        stays_key = CacheKey.list(Resource.STAY_RECORDS)
        await cache.fetch(stays_key, load_stays)
        await bookings.update_booking("b-1", BookingUpdate(guests=1))

        assert stays_key in cache

    def test_overpayment_in_payload_is_rejected(self):
        with pytest.raises(ValueError):
            BookingUpdate(total_amount=Decimal("100"), paid_amount=Decimal("150"))


class TestCreateBooking:
    async def test_invalid_form_sends_nothing(self, fake_api, bookings):
        room = Room.model_validate(make_room(capacity=2))
        form = BookingForm(
            room_id="r-101",
            check_in_date=date(2024, 1, 1),
            check_out_date=date(2024, 1, 4),
            guests=3,
        )

        with pytest.raises(BookingFormError) as exc_info:
            await bookings.create_booking(form, room, guest_id="u-guest", today=date(2024, 1, 1))

        assert exc_info.value.errors == {"guests": "This room can only accommodate 2 guest(s)"}
        assert fake_api.calls("POST", "/bookings") == []

    async def test_valid_form_is_posted(self, fake_api, bookings):
        fake_api.add("POST", "/bookings", status_code=201, body={"booking": make_booking()})
        room = Room.model_validate(make_room())
        form = BookingForm(
            room_id="r-101",
            check_in_date=date(2024, 1, 1),
            check_out_date=date(2024, 1, 4),
            guests=2,
        )

        booking = await bookings.create_booking(form, room, guest_id="u-guest", today=date(2024, 1, 1))

        assert booking.id == "b-1"
        sent = request_json(fake_api.calls("POST", "/bookings")[0])
        assert sent["check_in_date"].startswith("2024-01-01T14:00:00")
        assert sent["check_out_date"].startswith("2024-01-04T11:00:00")
        assert sent["guest_id"] == "u-guest"


class TestDescribeBooking:
    def test_totals_come_from_the_booking(self):
        view = describe_booking(Booking.model_validate(make_booking(total_amount=300, paid_amount=100)))
        assert view.nights == 3
        assert view.outstanding_amount == Decimal("200.00")
        assert view.payment_status == PaymentStatus.PARTIAL
        assert view.is_partially_paid
        assert view.is_pending
        assert view.can_cancel
        assert view.allowed_actions == ["confirm", "check_in", "cancel"]

    def test_overpaid_booking_reports_zero_outstanding(self):
        view = describe_booking(Booking.model_validate(make_booking(total_amount=300, paid_amount=320)))
        assert view.outstanding_amount == Decimal("0.00")
        assert view.is_paid

    def test_checked_in_cannot_be_cancelled(self):
        view = describe_booking(Booking.model_validate(make_booking(status="checked_in")))
        assert not view.can_cancel
        assert view.cancel_blocked_reason == "Booking cannot be cancelled after check-in."
        assert view.badge.label == "Checked In"

    def test_embedded_room_is_lifted(self):
        booking = Booking.model_validate(make_booking(room_id=make_room()))
        assert booking.room_id == "r-101"
        assert booking.room.room_number == "101"


class TestRooms:
    def test_room_card(self):
        card = to_room_card(Room.model_validate(make_room(type="suite", capacity=5, floor=3)))
        assert card.title == "Room 101 - Suite"
        assert card.address == "Floor 3, Hotel Address"
        assert card.price == "$100.00 /night"
        assert card.category == "villas"
        assert card.beds == 2
        assert card.is_featured
        assert card.images == ["/api/placeholder/400/300"]

    async def test_list_uses_cache(self, fake_api, api_client, cache):
        fake_api.add("GET", "/rooms", body={"rooms": [make_room()], "total": 1})
        rooms = RoomService(api_client, cache)

        first = await rooms.list_rooms()
        second = await rooms.list_rooms()

        assert first.data.total == 1
        assert second.data is first.data
        assert len(fake_api.calls("GET", "/rooms")) == 1

    async def test_availability_is_unwrapped_and_cached(self, fake_api, api_client, cache):
        fake_api.add(
            "GET",
            "/rooms/availability",
            body={"availability": [{"room_id": "r-101", "is_available": True}, {"room_id": "r-102", "is_available": False}]},
        )
        rooms = RoomService(api_client, cache)
        query = RoomAvailabilityQuery(check_in_date=date(2024, 1, 1), check_out_date=date(2024, 1, 4), guests=2)

        first = await rooms.check_availability(query)
        await rooms.check_availability(query)

        assert [item.room_id for item in first.data if item.is_available] == ["r-101"]
        sent = fake_api.calls("GET", "/rooms/availability")
        assert len(sent) == 1
        assert sent[0].url.params["check_in_date"] == "2024-01-01"
        assert sent[0].url.params["guests"] == "2"
        assert CacheKey.availability(query.model_dump(mode="json", exclude_none=True)) in cache

    def test_amenities_accept_json_strings(self):
        room = Room.model_validate(make_room(amenities='["wifi", "minibar"]'))
        assert room.amenities == ["wifi", "minibar"]


class TestStayRecords:
    async def test_active_stays(self, fake_api, api_client, cache):
        fake_api.add(
            "GET",
            "/stay-records",
            body={
                "stay_records": [
                    {"id": "s-1", "booking_id": "b-1", "actual_check_in_time": "2024-01-01T15:00:00Z"},
                    {
                        "id": "s-2",
                        "booking_id": "b-2",
                        "actual_check_in_time": "2024-01-01T15:00:00Z",
                        "actual_check_out_time": "2024-01-03T10:00:00Z",
                    },
                ],
                "total": 2,
            },
        )
        stays = StayRecordService(api_client, cache)

        result = await stays.active_stays()

        assert [record.id for record in result.data] == ["s-1"]

    async def test_active_stays_on_later_pages_are_found(self, fake_api, api_client, cache):
        pages = {
            "1": [{"id": "s-1", "booking_id": "b-1", "actual_check_in_time": "2024-01-01T15:00:00Z",
                   "actual_check_out_time": "2024-01-02T10:00:00Z"}],
            "2": [{"id": "s-2", "booking_id": "b-2", "actual_check_in_time": "2024-01-01T15:00:00Z"}],
        }

        def handler(request):
            page = request.url.params["page"]
            return httpx.Response(
                200,
                json={"stay_records": pages[page], "total": 2, "page": int(page), "limit": 1, "total_pages": 2},
            )

        fake_api.handle("GET", "/stay-records", handler)
        stays = StayRecordService(api_client, cache)

        result = await stays.active_stays(StayRecordSearchQuery(limit=1))

        assert [record.id for record in result.data] == ["s-2"]
        assert len(fake_api.calls("GET", "/stay-records")) == 2

    async def test_stats_unwrap(self, fake_api, api_client, cache):
        fake_api.add("GET", "/stay-records/stats/overview", body={"stats": {"active_stays": 4, "total_revenue": 1200}})
        stats = (await StayRecordService(api_client, cache).stats()).require()
        assert stats.active_stays == 4
        assert stats.total_revenue == Decimal("1200")


class TestUsers:
    async def test_profile_update_sends_changed_fields_only(self, fake_api, api_client, cache):
        fake_api.add("PUT", "/users/profile", body={"user": make_user(phone=None, city="Lisbon")})
        users = UserService(api_client, cache)

        await users.update_profile(UserProfileUpdate(city="Lisbon", phone="", first_name=""))

        assert request_json(fake_api.calls("PUT", "/users/profile")[0]) == {"city": "Lisbon", "phone": None}

    async def test_profile_is_cached_until_updated(self, fake_api, api_client, cache):
        fake_api.add("PUT", "/users/profile", body={"user": make_user(city="Lisbon")})
        users = UserService(api_client, cache)

        await users.get_profile()
        await users.get_profile()
        assert len(fake_api.calls("GET", "/users/profile")) == 1

        await users.update_profile(UserProfileUpdate(city="Lisbon"))
        await users.get_profile()
        assert len(fake_api.calls("GET", "/users/profile")) == 2

    async def test_login_binds_tokens(self, fake_api, http_client, cache):
        from frontdesk.core.api_client import HotelApiClient
        from frontdesk.core.session import SessionContext

        fake_api.add(
            "POST",
            "/auth/login",
            body={"token": "guest-token", "refresh_token": "r", "user": make_user()},
        )
        session = SessionContext()
        users = UserService(HotelApiClient(http_client, session), cache)

        tokens = await users.login(LoginRequest(email="guest@example.com", password="secret"))

        assert tokens.user.email == "guest@example.com"
        assert session.is_authenticated
        assert session.tokens_changed
