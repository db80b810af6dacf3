"""Page routers for Frontdesk."""

from frontdesk.routers.auth import router as auth_router
from frontdesk.routers.rooms import router as rooms_router
from frontdesk.routers.bookings import router as bookings_router
from frontdesk.routers.profile import router as profile_router
from frontdesk.routers.dashboard import router as dashboard_router

__all__ = [
    "auth_router",
    "rooms_router",
    "bookings_router",
    "profile_router",
    "dashboard_router",
]
