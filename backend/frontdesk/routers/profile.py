"""Profile router - the signed-in user's account page."""

from fastapi import APIRouter, Depends

from frontdesk.core.session import require_user
from frontdesk.schemas.booking import BookingSearchQuery
from frontdesk.schemas.user import User, UserProfileUpdate
from frontdesk.services.bookings import BookingService, describe_booking, get_booking_service
from frontdesk.services.users import UserService, get_user_service

router = APIRouter(prefix="/{locale}/profile", tags=["profile"])

RECENT_BOOKINGS = 5


@router.get("")
async def get_profile(
    user: User = Depends(require_user),
    bookings: BookingService = Depends(get_booking_service),
):
    """Account details and the most recent bookings."""
    recent = await bookings.list_bookings(BookingSearchQuery(limit=RECENT_BOOKINGS))
    return {
        "user": user,
        "full_name": user.full_name,
        "recent_bookings": [describe_booking(b) for b in recent.data.items] if recent.has_data else [],
        "bookings_error": recent.error.message if recent.is_error else None,
    }


@router.patch("")
async def update_profile(
    data: UserProfileUpdate,
    user: User = Depends(require_user),
    users: UserService = Depends(get_user_service),
):
    """Save changed fields only; blank optional fields are cleared."""
    updated = await users.update_profile(data)
    return {"user": updated}
