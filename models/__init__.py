"""Pydantic models for data validation and serialization."""

from .booking import (
    Booking,
    BookingRequest,
    BookingStatus,
    BookingUpdate,
    PaymentStatus,
)
from .calendar import AvailabilityUpdate, BulkAvailabilityUpdate, CalendarDay
from .contact import ContactRequest, ContactSubmission

__all__ = [
    "AvailabilityUpdate",
    "Booking",
    "BookingRequest",
    "BookingStatus",
    "BookingUpdate",
    "BulkAvailabilityUpdate",
    "CalendarDay",
    "ContactRequest",
    "ContactSubmission",
    "PaymentStatus",
]
