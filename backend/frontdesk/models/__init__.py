"""Domain enumerations for Frontdesk.

Entities themselves are owned by the remote hotel API; see frontdesk.schemas.
"""

from frontdesk.models.enums import (
    BookingAction,
    BookingStatus,
    PaymentStatus,
    RoomStatus,
    RoomType,
    SortOrder,
    StayRecordStatus,
    UserRole,
)

__all__ = [
    "BookingAction",
    "BookingStatus",
    "PaymentStatus",
    "RoomStatus",
    "RoomType",
    "SortOrder",
    "StayRecordStatus",
    "UserRole",
]
