"""Booking reads and lifecycle mutations.

Every lifecycle action is checked against the state machine before it is
sent, so an out-of-order request never reaches the hotel API.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import Depends, Request

from frontdesk.core.api_client import HotelApiClient, build_api_client, unwrap_model, unwrap_page
from frontdesk.core.cache import CacheKey, Mutation, QueryCache, QueryResult, Resource, build_query_cache
from frontdesk.core.session import SessionContext, get_session
from frontdesk.models.enums import BookingAction, BookingStatus
from frontdesk.schemas.base import Page
from frontdesk.schemas.booking import (
    Booking,
    BookingCancelRequest,
    BookingCheckInRequest,
    BookingCheckOutRequest,
    BookingSearchQuery,
    BookingUpdate,
    BookingView,
)
from frontdesk.schemas.room import Room
from frontdesk.services import lifecycle
from frontdesk.services.booking_form import BookingForm, BookingFormError, build_create_payload, validate_booking_form
from frontdesk.services.pricing import calculate_nights, outstanding_amount, payment_status, validate_payment

logger = logging.getLogger(__name__)

_ACTION_MUTATIONS = {
    BookingAction.CONFIRM: Mutation.CONFIRM_BOOKING,
    BookingAction.CHECK_IN: Mutation.CHECK_IN_BOOKING,
    BookingAction.CHECK_OUT: Mutation.CHECK_OUT_BOOKING,
    BookingAction.CANCEL: Mutation.CANCEL_BOOKING,
}


def describe_booking(booking: Booking) -> BookingView:
    """Derive the display state of a booking from its persisted amounts and status."""
    status = booking.status
    return BookingView(
        booking=booking,
        nights=calculate_nights(booking.check_in_date, booking.check_out_date),
        badge=lifecycle.status_badge(status),
        payment_status=payment_status(booking.total_amount, booking.paid_amount),
        outstanding_amount=outstanding_amount(booking.total_amount, booking.paid_amount),
        can_cancel=lifecycle.can_guest_cancel(status),
        cancel_blocked_reason=lifecycle.cancel_blocked_reason(status),
        allowed_actions=[action.value for action in lifecycle.allowed_actions(status)],
    )


class BookingService:
    """Bookings for guests (own history, create, cancel) and staff (everything)."""

    def __init__(self, api: HotelApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def list_bookings(self, query: Optional[BookingSearchQuery] = None) -> QueryResult[Page[Booking]]:
        """Bookings visible to the session; the API scopes guests to their own."""
        query = query or BookingSearchQuery()
        key = CacheKey.list(Resource.BOOKINGS, query.to_params())

        async def load() -> Page[Booking]:
            return unwrap_page(await self.api.get(key.path, params=key.query), Booking, "bookings")

        return await self.cache.query(key, load)

    async def get_booking(self, booking_id: Optional[str], enabled: bool = True) -> QueryResult[Booking]:
        key = CacheKey.detail(Resource.BOOKINGS, booking_id) if booking_id else None

        async def load() -> Booking:
            return unwrap_model(await self.api.get(key.path), Booking, "booking")

        return await self.cache.query(key, load, enabled=enabled)

    async def _load_current(self, booking_id: str) -> Booking:
        """Uncached read used to check a transition against the latest status."""
        return unwrap_model(await self.api.get(f"/bookings/{booking_id}"), Booking, "booking")

    async def create_booking(
        self,
        form: BookingForm,
        room: Optional[Room],
        guest_id: str,
        today: Optional[date] = None,
    ) -> Booking:
        """Validate the guest form and create the booking.

        Raises:
            BookingFormError: If any field is invalid; nothing is sent.
        """
        errors = validate_booking_form(form, room, today=today)
        if errors:
            raise BookingFormError(errors)

        payload = build_create_payload(form, guest_id)
        data = await self.api.post("/bookings", json=payload.model_dump(mode="json", exclude_none=True))
        booking = unwrap_model(data, Booking, "booking")
        self.cache.invalidate_mutation(Mutation.CREATE_BOOKING, booking.id)
        logger.info(f"[BOOKINGS] Created booking {booking.id} for room {booking.room_id}")
        return booking

    async def update_booking(self, booking_id: str, changes: BookingUpdate) -> Booking:
        """Staff edit. A status change must follow one allowed transition.

        Amount edits are checked against the stored amounts they leave
        untouched, so paid never ends up above total.
        """
        current = await self._load_current(booking_id)
        action = None
        if changes.status is not None:
            action = lifecycle.action_for_status_change(current.status, changes.status)
        if changes.total_amount is not None or changes.paid_amount is not None:
            total = changes.total_amount if changes.total_amount is not None else current.total_amount
            paid = changes.paid_amount if changes.paid_amount is not None else current.paid_amount
            field = "paid_amount" if changes.paid_amount is not None else "total_amount"
            try:
                validate_payment(total, paid)
            except ValueError as e:
                raise BookingFormError({field: str(e)}) from e

        data = await self.api.put(
            f"/bookings/{booking_id}",
            json=changes.model_dump(mode="json", exclude_unset=True),
        )
        self.cache.invalidate_mutation(Mutation.UPDATE_BOOKING, booking_id)
        if action is not None:
            self.cache.invalidate_mutation(_ACTION_MUTATIONS[action], booking_id)
            logger.info(f"[BOOKINGS] {booking_id}: {current.status.value} -> {changes.status.value}")
        return unwrap_model(data, Booking, "booking")

    async def _apply(
        self,
        booking_id: str,
        action: BookingAction,
        path: str,
        method: str = "POST",
        payload: Optional[dict] = None,
    ) -> Booking:
        current = await self._load_current(booking_id)
        target = lifecycle.next_status(current.status, action)

        data = await self.api.request(method, path, json=payload)
        self.cache.invalidate_mutation(_ACTION_MUTATIONS[action], booking_id)
        logger.info(f"[BOOKINGS] {booking_id}: {current.status.value} -> {target.value}")

        if isinstance(data, dict) and ("booking" in data or "id" in data):
            return unwrap_model(data, Booking, "booking")
        return current.model_copy(update={"status": target})

    async def confirm(self, booking_id: str) -> Booking:
        return await self._apply(
            booking_id,
            BookingAction.CONFIRM,
            f"/bookings/{booking_id}",
            method="PUT",
            payload={"status": BookingStatus.CONFIRMED.value},
        )

    async def cancel(self, booking_id: str, request: Optional[BookingCancelRequest] = None) -> Booking:
        """Cancel before check-in. Works for guests and staff alike."""
        request = request or BookingCancelRequest()
        return await self._apply(
            booking_id,
            BookingAction.CANCEL,
            f"/bookings/{booking_id}/cancel",
            payload=request.model_dump(mode="json"),
        )

    async def check_in(self, booking_id: str, request: Optional[BookingCheckInRequest] = None) -> Booking:
        request = request or BookingCheckInRequest()
        return await self._apply(
            booking_id,
            BookingAction.CHECK_IN,
            f"/bookings/{booking_id}/check-in",
            payload=request.model_dump(mode="json", exclude_none=True),
        )

    async def check_out(self, booking_id: str, request: Optional[BookingCheckOutRequest] = None) -> Booking:
        request = request or BookingCheckOutRequest()
        return await self._apply(
            booking_id,
            BookingAction.CHECK_OUT,
            f"/bookings/{booking_id}/check-out",
            payload=request.model_dump(mode="json", exclude_none=True),
        )

    async def delete_booking(self, booking_id: str) -> None:
        await self.api.delete(f"/bookings/{booking_id}")
        self.cache.invalidate_mutation(Mutation.DELETE_BOOKING, booking_id)
        logger.info(f"[BOOKINGS] Deleted booking {booking_id}")


def build_booking_service(request: Request, session: SessionContext) -> BookingService:
    return BookingService(build_api_client(request, session), build_query_cache(request, session))


async def get_booking_service(
    request: Request,
    session: SessionContext = Depends(get_session),
) -> BookingService:
    return build_booking_service(request, session)
