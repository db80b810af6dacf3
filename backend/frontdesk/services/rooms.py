"""Room inventory: reads, staff writes, availability and listing cards."""

import logging
from typing import Optional

from fastapi import Depends, Request

from frontdesk.core.api_client import HotelApiClient, build_api_client, unwrap, unwrap_model, unwrap_page
from frontdesk.core.cache import CacheKey, Mutation, QueryCache, QueryResult, Resource, build_query_cache
from frontdesk.core.session import SessionContext, get_session
from frontdesk.models.enums import RoomStatus, RoomType
from frontdesk.schemas.base import Page
from frontdesk.schemas.room import (
    Room,
    RoomAvailability,
    RoomAvailabilityQuery,
    RoomBulkStatusUpdate,
    RoomCard,
    RoomCreate,
    RoomSearchQuery,
    RoomUpdate,
)
from frontdesk.services.pricing import format_price

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "/api/placeholder/400/300"

ROOM_CATEGORIES = {
    RoomType.SINGLE: "rooms",
    RoomType.DOUBLE: "rooms",
    RoomType.SUITE: "villas",
    RoomType.DELUXE: "flats",
}


def to_room_card(room: Room) -> RoomCard:
    """Listing card for the public room grid."""
    address = f"Floor {room.floor}, Hotel Address" if room.floor else "Hotel Address"
    return RoomCard(
        id=room.id,
        title=f"Room {room.room_number} - {room.type.value.capitalize()}",
        address=address,
        price=f"{format_price(room.price_per_night)} /night",
        images=room.images or [PLACEHOLDER_IMAGE],
        category=ROOM_CATEGORIES.get(room.type, "rooms"),
        beds=max(1, room.capacity // 2),
        is_featured=room.status == RoomStatus.AVAILABLE,
    )


class RoomService:
    """Rooms as seen by guests (reads) and staff (writes)."""

    def __init__(self, api: HotelApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def list_rooms(self, query: Optional[RoomSearchQuery] = None) -> QueryResult[Page[Room]]:
        query = query or RoomSearchQuery()
        key = CacheKey.list(Resource.ROOMS, query.to_params())

        async def load() -> Page[Room]:
            return unwrap_page(await self.api.get(key.path, params=key.query), Room, "rooms")

        return await self.cache.query(key, load)

    async def get_room(self, room_id: Optional[str], enabled: bool = True) -> QueryResult[Room]:
        key = CacheKey.detail(Resource.ROOMS, room_id) if room_id else None

        async def load() -> Room:
            return unwrap_model(await self.api.get(key.path), Room, "room")

        return await self.cache.query(key, load, enabled=enabled)

    async def check_availability(self, query: RoomAvailabilityQuery) -> QueryResult[list[RoomAvailability]]:
        key = CacheKey.availability(query.model_dump(mode="json", exclude_none=True))

        async def load() -> list[RoomAvailability]:
            data = unwrap(await self.api.get(key.path, params=key.query), "availability", "rooms", "data")
            return [RoomAvailability.model_validate(item) for item in data or []]

        return await self.cache.query(key, load)

    async def create_room(self, data: RoomCreate) -> Room:
        response = await self.api.post("/rooms", json=data.model_dump(mode="json", exclude_none=True))
        room = unwrap_model(response, Room, "room")
        self.cache.invalidate_mutation(Mutation.CREATE_ROOM, room.id)
        logger.info(f"[ROOMS] Created room {room.room_number}")
        return room

    async def update_room(self, room_id: str, data: RoomUpdate) -> Room:
        response = await self.api.put(f"/rooms/{room_id}", json=data.model_dump(mode="json", exclude_unset=True))
        self.cache.invalidate_mutation(Mutation.UPDATE_ROOM, room_id)
        return unwrap_model(response, Room, "room")

    async def delete_room(self, room_id: str) -> None:
        await self.api.delete(f"/rooms/{room_id}")
        self.cache.invalidate_mutation(Mutation.DELETE_ROOM, room_id)
        logger.info(f"[ROOMS] Deleted room {room_id}")

    async def bulk_update_status(self, data: RoomBulkStatusUpdate) -> None:
        await self.api.patch("/rooms/bulk-status", json=data.model_dump(mode="json"))
        self.cache.invalidate_mutation(Mutation.BULK_ROOM_STATUS)


def build_room_service(request: Request, session: SessionContext) -> RoomService:
    return RoomService(build_api_client(request, session), build_query_cache(request, session))


async def get_room_service(
    request: Request,
    session: SessionContext = Depends(get_session),
) -> RoomService:
    return build_room_service(request, session)
