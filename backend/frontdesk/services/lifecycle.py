"""Booking lifecycle state machine.

- pending -> confirmed (confirm)
- pending / confirmed -> checked_in (check-in)
- checked_in -> checked_out (check-out)
- pending / confirmed -> cancelled (cancel)

checked_out and cancelled are terminal.
"""

from typing import Optional, Union

from frontdesk.models.enums import BookingAction, BookingStatus
from frontdesk.schemas.booking import StatusBadge

TRANSITIONS: dict[tuple[BookingStatus, BookingAction], BookingStatus] = {
    (BookingStatus.PENDING, BookingAction.CONFIRM): BookingStatus.CONFIRMED,
    (BookingStatus.PENDING, BookingAction.CHECK_IN): BookingStatus.CHECKED_IN,
    (BookingStatus.CONFIRMED, BookingAction.CHECK_IN): BookingStatus.CHECKED_IN,
    (BookingStatus.CHECKED_IN, BookingAction.CHECK_OUT): BookingStatus.CHECKED_OUT,
    (BookingStatus.PENDING, BookingAction.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.CONFIRMED, BookingAction.CANCEL): BookingStatus.CANCELLED,
}

TERMINAL_STATUSES = frozenset({BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED})

GUEST_CANCELLABLE = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

STATUS_BADGES: dict[BookingStatus, StatusBadge] = {
    BookingStatus.PENDING: StatusBadge(label="Pending", tone="yellow"),
    BookingStatus.CONFIRMED: StatusBadge(label="Confirmed", tone="blue"),
    BookingStatus.CHECKED_IN: StatusBadge(label="Checked In", tone="green"),
    BookingStatus.CHECKED_OUT: StatusBadge(label="Checked Out", tone="gray"),
    BookingStatus.CANCELLED: StatusBadge(label="Cancelled", tone="red"),
}

CANCEL_BLOCKED_REASONS: dict[BookingStatus, str] = {
    BookingStatus.CHECKED_IN: "Booking cannot be cancelled after check-in.",
    BookingStatus.CHECKED_OUT: "This booking has been completed.",
    BookingStatus.CANCELLED: "This booking has been cancelled.",
}


class BookingTransitionError(ValueError):
    """Raised when an action is not allowed from a booking's current status."""

    def __init__(self, status: BookingStatus, action: Union[BookingAction, BookingStatus]):
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action.value.replace('_', ' ')} a booking that is {status.value.replace('_', ' ')}"
            if isinstance(action, BookingAction)
            else f"Cannot change booking status from {status.value} to {action.value}"
        )


def can_transition(status: BookingStatus, action: BookingAction) -> bool:
    """Whether ``action`` is allowed from ``status``."""
    return (BookingStatus(status), BookingAction(action)) in TRANSITIONS


def next_status(status: BookingStatus, action: BookingAction) -> BookingStatus:
    """Status reached by applying ``action``.

    Raises:
        BookingTransitionError: If the action is not allowed from ``status``.
    """
    status = BookingStatus(status)
    action = BookingAction(action)
    try:
        return TRANSITIONS[(status, action)]
    except KeyError:
        raise BookingTransitionError(status, action) from None


def allowed_actions(status: BookingStatus) -> list[BookingAction]:
    """Actions available from ``status``, in declaration order."""
    status = BookingStatus(status)
    return [action for action in BookingAction if (status, action) in TRANSITIONS]


def is_terminal(status: BookingStatus) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES


def can_guest_cancel(status: BookingStatus) -> bool:
    """Guests may cancel only before the stay starts."""
    return BookingStatus(status) in GUEST_CANCELLABLE


def cancel_blocked_reason(status: BookingStatus) -> Optional[str]:
    """Guest-facing explanation of why a booking can no longer be cancelled."""
    return CANCEL_BLOCKED_REASONS.get(BookingStatus(status))


def action_for_status_change(current: BookingStatus, target: BookingStatus) -> Optional[BookingAction]:
    """The single action behind a direct status edit from the back office.

    A staff edit may keep the current status (None) or move along exactly
    one allowed transition; anything else is rejected.
    """
    current = BookingStatus(current)
    target = BookingStatus(target)
    if current == target:
        return None
    for (source, action), result in TRANSITIONS.items():
        if source == current and result == target:
            return action
    raise BookingTransitionError(current, target)


def status_badge(status: Union[BookingStatus, str]) -> StatusBadge:
    """Badge for a status; unknown values fall back to the pending badge."""
    try:
        return STATUS_BADGES[BookingStatus(status)]
    except ValueError:
        return STATUS_BADGES[BookingStatus.PENDING]
