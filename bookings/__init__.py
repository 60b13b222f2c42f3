"""Booking lifecycle, calendar administration and supporting rules."""

from .calendar import CalendarService
from .lifecycle import BookingLifecycleManager
from .reference import generate_booking_reference
from .results import OperationResult
from .state_machine import BOOKING_TRANSITIONS, assert_transition, parse_status

__all__ = [
    "BOOKING_TRANSITIONS",
    "BookingLifecycleManager",
    "CalendarService",
    "OperationResult",
    "assert_transition",
    "generate_booking_reference",
    "parse_status",
]
