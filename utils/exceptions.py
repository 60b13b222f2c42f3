"""
Custom exception classes for the booking system.
Every error carries the kind used to map it onto an API response.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Error categories surfaced to callers."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    POLICY = "policy"
    CONFLICT = "conflict"
    STORAGE = "storage"


class BookingSystemError(Exception):
    """Base exception for expected booking system failures."""

    kind = ErrorKind.STORAGE


class ValidationError(BookingSystemError):
    """Raised when input validation fails."""

    kind = ErrorKind.VALIDATION


class BookingNotFoundError(BookingSystemError):
    """Raised when a booking is not found."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Booking not found"):
        super().__init__(message)


class ContactNotFoundError(BookingSystemError):
    """Raised when a contact submission is not found."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Contact submission not found"):
        super().__init__(message)


class InvalidStatusError(BookingSystemError):
    """Raised when a status value is not part of the booking status enum."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str = "Invalid status value"):
        super().__init__(message)


class InvalidTransitionError(BookingSystemError):
    """Raised when a status change is not allowed by the state machine."""

    kind = ErrorKind.POLICY


class BookingDeletionError(BookingSystemError):
    """Raised when deleting a booking that is still active."""

    kind = ErrorKind.POLICY


class DateHeldByBookingError(BookingSystemError):
    """Raised when an administrative change targets a booking-held date."""

    kind = ErrorKind.POLICY


class DateUnavailableError(BookingSystemError):
    """Raised when a booking tries to claim a date that is already held."""

    kind = ErrorKind.CONFLICT


class ConcurrentUpdateError(BookingSystemError):
    """Raised when a guarded update finds the row changed underneath it."""

    kind = ErrorKind.CONFLICT


class DatabaseError(BookingSystemError):
    """Base exception for storage failures."""

    kind = ErrorKind.STORAGE


class DuplicateReferenceError(DatabaseError):
    """Raised when a booking reference collides with an existing one."""

    pass
