"""Rooms router - public room listing and room detail pages."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from frontdesk.schemas.room import RoomAvailabilityQuery, RoomSearchQuery
from frontdesk.services.rooms import RoomService, get_room_service, to_room_card

router = APIRouter(prefix="/{locale}/rooms", tags=["rooms"])


@router.get("")
async def list_rooms(
    query: Annotated[RoomSearchQuery, Query()],
    rooms: RoomService = Depends(get_room_service),
):
    """Room grid with filters and pagination."""
    page = (await rooms.list_rooms(query)).require()
    return {
        "items": [to_room_card(room) for room in page.items],
        "total": page.total,
        "page": page.page,
        "limit": page.limit,
        "total_pages": page.total_pages,
        "has_rooms": page.has_items,
    }


@router.get("/availability")
async def room_availability(
    query: Annotated[RoomAvailabilityQuery, Query()],
    rooms: RoomService = Depends(get_room_service),
):
    """Which rooms are free for the requested stay."""
    availability = (await rooms.check_availability(query)).require()
    return {
        "items": availability,
        "available_room_ids": [item.room_id for item in availability if item.is_available],
    }


@router.get("/{room_id}")
async def get_room(
    locale: str,
    room_id: str,
    rooms: RoomService = Depends(get_room_service),
):
    """Room detail with a link to the booking form."""
    room = (await rooms.get_room(room_id)).require()
    return {
        "room": room,
        "card": to_room_card(room),
        "book_url": f"/{locale}/booking?room_id={room.id}",
    }
