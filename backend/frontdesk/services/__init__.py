"""Frontdesk services: domain rules and remote resource access."""

from frontdesk.services.bookings import BookingService, describe_booking, get_booking_service
from frontdesk.services.rooms import RoomService, get_room_service, to_room_card
from frontdesk.services.stay_records import StayRecordService, get_stay_record_service
from frontdesk.services.users import UserService, build_user_service, get_user_service

__all__ = [
    "BookingService",
    "RoomService",
    "StayRecordService",
    "UserService",
    "build_user_service",
    "describe_booking",
    "get_booking_service",
    "get_room_service",
    "get_stay_record_service",
    "get_user_service",
    "to_room_card",
]
