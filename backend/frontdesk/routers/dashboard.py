"""Dashboard router - staff back office for rooms, bookings, stays and users."""

import asyncio
from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status

from frontdesk.core.session import require_admin, require_staff
from frontdesk.schemas.booking import (
    BookingCancelRequest,
    BookingCheckInRequest,
    BookingCheckOutRequest,
    BookingSearchQuery,
    BookingUpdate,
)
from frontdesk.schemas.room import RoomBulkStatusUpdate, RoomCreate, RoomSearchQuery, RoomUpdate
from frontdesk.schemas.stay_record import (
    StayRecordCheckOut,
    StayRecordCreate,
    StayRecordSearchQuery,
    StayRecordUpdate,
)
from frontdesk.schemas.user import UserAdminUpdate, UserSearchQuery
from frontdesk.services.bookings import BookingService, describe_booking, get_booking_service
from frontdesk.services.rooms import RoomService, get_room_service
from frontdesk.services.stay_records import StayRecordService, get_stay_record_service
from frontdesk.services.users import UserService, get_user_service

router = APIRouter(
    prefix="/{locale}/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(require_staff)],
)


def _page_payload(page, items=None) -> dict:
    return {
        "items": page.items if items is None else items,
        "total": page.total,
        "page": page.page,
        "limit": page.limit,
        "total_pages": page.total_pages,
    }


@router.get("")
async def get_overview(
    rooms: RoomService = Depends(get_room_service),
    bookings: BookingService = Depends(get_booking_service),
    stays: StayRecordService = Depends(get_stay_record_service),
):
    """Back-office landing page.

    Returns:
    - Stay statistics (active stays, today's check-ins/outs, revenue)
    - Most recent bookings
    - Room count
    Each section reports its own error so one failing read does not blank the page.
    """
    stats, recent, room_page = await asyncio.gather(
        stays.stats(),
        bookings.list_bookings(BookingSearchQuery(limit=5)),
        rooms.list_rooms(RoomSearchQuery(limit=1)),
    )
    return {
        "stats": stats.data,
        "recent_bookings": [describe_booking(b) for b in recent.data.items] if recent.has_data else [],
        "total_rooms": room_page.data.total if room_page.has_data else None,
        "errors": {
            name: result.error.message
            for name, result in (("stats", stats), ("bookings", recent), ("rooms", room_page))
            if result.is_error
        },
    }


# Rooms


@router.get("/rooms")
async def list_rooms(
    query: Annotated[RoomSearchQuery, Query()],
    rooms: RoomService = Depends(get_room_service),
):
    """Room inventory."""
    return _page_payload((await rooms.list_rooms(query)).require())


@router.post("/rooms", status_code=status.HTTP_201_CREATED)
async def create_room(
    data: RoomCreate,
    rooms: RoomService = Depends(get_room_service),
):
    return {"room": await rooms.create_room(data)}


@router.patch("/rooms/bulk-status", status_code=status.HTTP_204_NO_CONTENT)
async def bulk_update_room_status(
    data: RoomBulkStatusUpdate,
    rooms: RoomService = Depends(get_room_service),
):
    """Set the housekeeping status of several rooms at once."""
    await rooms.bulk_update_status(data)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/rooms/{room_id}")
async def get_room(
    room_id: str,
    rooms: RoomService = Depends(get_room_service),
):
    return {"room": (await rooms.get_room(room_id)).require()}


@router.put("/rooms/{room_id}")
async def update_room(
    room_id: str,
    data: RoomUpdate,
    rooms: RoomService = Depends(get_room_service),
):
    return {"room": await rooms.update_room(room_id, data)}


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: str,
    rooms: RoomService = Depends(get_room_service),
):
    await rooms.delete_room(room_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Bookings


@router.get("/bookings")
async def list_bookings(
    query: Annotated[BookingSearchQuery, Query()],
    bookings: BookingService = Depends(get_booking_service),
):
    """All bookings with status and date filters."""
    page = (await bookings.list_bookings(query)).require()
    return _page_payload(page, [describe_booking(b) for b in page.items])


@router.get("/bookings/{booking_id}")
async def get_booking(
    booking_id: str,
    bookings: BookingService = Depends(get_booking_service),
):
    """Booking detail with the lifecycle actions currently available."""
    return describe_booking((await bookings.get_booking(booking_id)).require())


@router.put("/bookings/{booking_id}")
async def update_booking(
    booking_id: str,
    data: BookingUpdate,
    bookings: BookingService = Depends(get_booking_service),
):
    """Edit dates, guests, amounts or status (one transition at a time)."""
    return describe_booking(await bookings.update_booking(booking_id, data))


@router.post("/bookings/{booking_id}/confirm")
async def confirm_booking(
    booking_id: str,
    bookings: BookingService = Depends(get_booking_service),
):
    return describe_booking(await bookings.confirm(booking_id))


@router.post("/bookings/{booking_id}/check-in")
async def check_in_booking(
    booking_id: str,
    data: Optional[BookingCheckInRequest] = Body(None),
    bookings: BookingService = Depends(get_booking_service),
):
    return describe_booking(await bookings.check_in(booking_id, data))


@router.post("/bookings/{booking_id}/check-out")
async def check_out_booking(
    booking_id: str,
    data: Optional[BookingCheckOutRequest] = Body(None),
    bookings: BookingService = Depends(get_booking_service),
):
    return describe_booking(await bookings.check_out(booking_id, data))


@router.post("/bookings/{booking_id}/cancel")
async def cancel_booking(
    booking_id: str,
    data: Optional[BookingCancelRequest] = Body(None),
    bookings: BookingService = Depends(get_booking_service),
):
    """Cancel before check-in; a checked-in booking must be checked out instead."""
    return describe_booking(await bookings.cancel(booking_id, data))


@router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: str,
    bookings: BookingService = Depends(get_booking_service),
):
    await bookings.delete_booking(booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Stay records


@router.get("/stay-records")
async def list_stay_records(
    query: Annotated[StayRecordSearchQuery, Query()],
    stays: StayRecordService = Depends(get_stay_record_service),
):
    page = (await stays.list_stay_records(query)).require()
    return {**_page_payload(page), "has_stay_records": page.has_items}


@router.get("/stay-records/active")
async def list_active_stays(
    query: Annotated[StayRecordSearchQuery, Query()],
    stays: StayRecordService = Depends(get_stay_record_service),
):
    """Guests currently in house (checked in, not yet checked out)."""
    records = (await stays.active_stays(query)).require()
    return {"items": records, "total": len(records)}


@router.get("/stay-records/stats")
async def stay_record_stats(stays: StayRecordService = Depends(get_stay_record_service)):
    return (await stays.stats()).require()


@router.post("/stay-records", status_code=status.HTTP_201_CREATED)
async def create_stay_record(
    data: StayRecordCreate,
    stays: StayRecordService = Depends(get_stay_record_service),
):
    return {"stay_record": await stays.create_stay_record(data)}


@router.get("/stay-records/{record_id}")
async def get_stay_record(
    record_id: str,
    stays: StayRecordService = Depends(get_stay_record_service),
):
    record = (await stays.get_stay_record(record_id)).require()
    return {"stay_record": record, "is_active": record.is_active, "charges_total": record.charges_total}


@router.put("/stay-records/{record_id}")
async def update_stay_record(
    record_id: str,
    data: StayRecordUpdate,
    stays: StayRecordService = Depends(get_stay_record_service),
):
    return {"stay_record": await stays.update_stay_record(record_id, data)}


@router.post("/stay-records/{record_id}/checkout")
async def check_out_stay_record(
    record_id: str,
    data: Optional[StayRecordCheckOut] = Body(None),
    stays: StayRecordService = Depends(get_stay_record_service),
):
    return {"stay_record": await stays.check_out(record_id, data)}


@router.delete("/stay-records/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_stay_record(
    record_id: str,
    stays: StayRecordService = Depends(get_stay_record_service),
):
    await stays.delete_stay_record(record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Users


@router.get("/users")
async def list_users(
    query: Annotated[UserSearchQuery, Query()],
    users: UserService = Depends(get_user_service),
):
    return _page_payload((await users.list_users(query)).require())


@router.get("/users/{user_id}")
async def get_user(
    user_id: str,
    users: UserService = Depends(get_user_service),
):
    return {"user": (await users.get_user(user_id)).require()}


@router.put("/users/{user_id}", dependencies=[Depends(require_admin)])
async def update_user(
    user_id: str,
    data: UserAdminUpdate,
    users: UserService = Depends(get_user_service),
):
    """Change role, activation or profile fields of any account (admin only)."""
    return {"user": await users.update_user(user_id, data)}


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
async def delete_user(
    user_id: str,
    users: UserService = Depends(get_user_service),
):
    await users.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
