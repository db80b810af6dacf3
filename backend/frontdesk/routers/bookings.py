"""Bookings router - guest booking form, booking history and cancellation."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from frontdesk.core.session import require_user
from frontdesk.models.enums import BookingStatus
from frontdesk.schemas.booking import BookingCancelRequest, BookingSearchQuery
from frontdesk.schemas.user import User
from frontdesk.services.booking_form import BookingForm
from frontdesk.services.bookings import BookingService, describe_booking, get_booking_service
from frontdesk.services.pricing import quote_stay
from frontdesk.services.rooms import RoomService, get_room_service

router = APIRouter(prefix="/{locale}", tags=["bookings"])


@router.get("/booking")
async def booking_form(
    room_id: Optional[str] = Query(None),
    check_in_date: Optional[date] = Query(None),
    check_out_date: Optional[date] = Query(None),
    guests: int = Query(1),
    user: User = Depends(require_user),
    rooms: RoomService = Depends(get_room_service),
):
    """Booking form context: the selected room and a price quote once dates are picked.

    The quote uses the room's current nightly rate; the created booking's
    own total is authoritative afterwards.
    """
    room = (await rooms.get_room(room_id, enabled=room_id is not None)).require()

    quote = None
    if room is not None and check_in_date and check_out_date and check_out_date > check_in_date:
        quote = quote_stay(check_in_date, check_out_date, room.price_per_night)

    return {
        "form": BookingForm(
            room_id=room_id,
            check_in_date=check_in_date,
            check_out_date=check_out_date,
            guests=guests,
        ),
        "room": room,
        "quote": quote,
        "guest": user,
    }


@router.post("/booking", status_code=status.HTTP_201_CREATED)
async def create_booking(
    locale: str,
    form: BookingForm,
    user: User = Depends(require_user),
    rooms: RoomService = Depends(get_room_service),
    bookings: BookingService = Depends(get_booking_service),
):
    """Submit the booking form.

    Field errors come back as 422 with a field -> message map; nothing is
    sent to the hotel API until the form is valid.
    """
    room = (await rooms.get_room(form.room_id, enabled=form.room_id is not None)).require()
    booking = await bookings.create_booking(form, room, guest_id=user.id)
    return {
        "booking": describe_booking(booking),
        "redirect_to": f"/{locale}/bookings/{booking.id}",
    }


@router.get("/bookings")
async def list_bookings(
    page: int = Query(1, ge=1),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    user: User = Depends(require_user),
    bookings: BookingService = Depends(get_booking_service),
):
    """The signed-in guest's bookings, newest first."""
    query = BookingSearchQuery(page=page, limit=10, status=booking_status, sort_by="created_at")
    result = (await bookings.list_bookings(query)).require()
    return {
        "items": [describe_booking(booking) for booking in result.items],
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
        "total_pages": result.total_pages,
        "has_bookings": result.has_items,
    }


@router.get("/bookings/{booking_id}")
async def get_booking(
    booking_id: str,
    user: User = Depends(require_user),
    bookings: BookingService = Depends(get_booking_service),
):
    """Booking detail with payment summary and whether it can still be cancelled."""
    booking = (await bookings.get_booking(booking_id)).require()
    return describe_booking(booking)


@router.post("/bookings/{booking_id}/cancel")
async def cancel_booking(
    booking_id: str,
    data: Optional[BookingCancelRequest] = Body(None),
    user: User = Depends(require_user),
    bookings: BookingService = Depends(get_booking_service),
):
    """Guest cancellation, allowed only before check-in."""
    booking = await bookings.cancel(booking_id, data)
    return describe_booking(booking)
