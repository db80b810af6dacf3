"""Enumeration types for the Frontdesk domain model."""

from enum import Enum


class BookingStatus(str, Enum):
    """Status of a room booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


class BookingAction(str, Enum):
    """Staff or guest action that moves a booking between statuses."""
    CONFIRM = "confirm"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    CANCEL = "cancel"


class PaymentStatus(str, Enum):
    """Payment state derived from total and paid amounts."""
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class RoomType(str, Enum):
    """Type of room."""
    SINGLE = "single"
    DOUBLE = "double"
    SUITE = "suite"
    DELUXE = "deluxe"


class RoomStatus(str, Enum):
    """Housekeeping status of a room (independent of booking status)."""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"
    CLEANING = "cleaning"


class UserRole(str, Enum):
    """Role of a user account."""
    GUEST = "guest"
    STAFF = "staff"
    ADMIN = "admin"


class StayRecordStatus(str, Enum):
    """Physical occupancy state of a stay record."""
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    COMPLETED = "completed"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
