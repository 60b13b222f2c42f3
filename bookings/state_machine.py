"""Booking status state machine."""

from typing import Any

from models.booking import BookingStatus
from utils.exceptions import InvalidStatusError, InvalidTransitionError

BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED},
    BookingStatus.IN_PROGRESS: {BookingStatus.COMPLETED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in BOOKING_TRANSITIONS.items() if not targets)

# Statuses a booking may be deleted from; active bookings must be cancelled first
DELETABLE_STATUSES = frozenset(
    {BookingStatus.PENDING, BookingStatus.COMPLETED, BookingStatus.CANCELLED}
)


def parse_status(value: Any) -> BookingStatus:
    """
    Convert untrusted input into a ``BookingStatus``.

    Raises:
        InvalidStatusError: If the value is not a known status
    """
    if isinstance(value, BookingStatus):
        return value
    if not isinstance(value, str):
        raise InvalidStatusError()
    try:
        return BookingStatus(value.strip().upper())
    except ValueError:
        raise InvalidStatusError() from None


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return current == target or target in BOOKING_TRANSITIONS.get(current, set())


def assert_transition(current: BookingStatus, target: BookingStatus) -> None:
    if not can_transition(current, target):
        allowed = sorted(s.value for s in BOOKING_TRANSITIONS.get(current, set()))
        hint = f"allowed: {', '.join(allowed)}" if allowed else f"{current.value} is final"
        raise InvalidTransitionError(
            f"Invalid status transition: {current.value} -> {target.value} ({hint})"
        )
