"""
Storage interface and Unit of Work.

Reads go straight to the store. Writes are staged on a ``UnitOfWork`` as
change records and handed to the store in one call on commit, which
applies all of them atomically or none of them.

Usage:
    async with store.unit_of_work() as uow:
        uow.insert_booking(booking)
        uow.claim_date(booking.event_date, booking.id, "Booked Event")
    # Changes are applied here; an exception inside the block discards them
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic_core import to_jsonable_python

from models.booking import Booking, BookingStatus
from models.calendar import CalendarDay
from models.contact import ContactSubmission

logger = logging.getLogger(__name__)


class ChangeOp(str, Enum):
    """Write operations understood by every store."""

    INSERT_BOOKING = "insert_booking"
    UPDATE_BOOKING = "update_booking"
    DELETE_BOOKING = "delete_booking"
    CLAIM_DATE = "claim_date"
    RELEASE_BOOKING_DATES = "release_booking_dates"
    SET_DATE_BLOCK = "set_date_block"
    INSERT_CONTACT = "insert_contact"
    UPDATE_CONTACT = "update_contact"


@dataclass
class Change:
    """A single staged write."""

    op: ChangeOp
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"op": self.op.value, "payload": self.payload}


class UnitOfWork:
    """Collects changes and commits them to the store in one atomic call."""

    def __init__(self, store: "BookingStore"):
        self._store = store
        self.changes: List[Change] = []

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            await self.commit()
        else:
            self.rollback()
        return False

    async def commit(self) -> None:
        """Apply every staged change atomically."""
        if not self.changes:
            return
        changes = list(self.changes)
        self.changes.clear()
        logger.debug(f"Committing unit of work with {len(changes)} changes")
        await self._store.apply_changes(changes)

    def rollback(self) -> None:
        """Discard staged changes."""
        if self.changes:
            logger.warning(f"Rolling back unit of work, discarding {len(self.changes)} changes")
        self.changes.clear()

    def _stage(self, op: ChangeOp, **payload: Any) -> None:
        self.changes.append(Change(op=op, payload=to_jsonable_python(payload)))

    # ========== Bookings ==========

    def insert_booking(self, booking: Booking) -> None:
        self._stage(ChangeOp.INSERT_BOOKING, row=booking.to_row())

    def update_booking(
        self,
        booking_id: str,
        changes: Dict[str, Any],
        expected_status: Optional[BookingStatus] = None,
    ) -> None:
        """Update fields; fails with a conflict if the status moved meanwhile."""
        self._stage(
            ChangeOp.UPDATE_BOOKING,
            id=booking_id,
            changes=changes,
            expected_status=expected_status,
        )

    def delete_booking(self, booking_id: str) -> None:
        self._stage(ChangeOp.DELETE_BOOKING, id=booking_id)

    # ========== Calendar ==========

    def claim_date(self, day: date, booking_id: str, reason: str) -> None:
        """Mark a day unavailable and link it to a booking.

        Fails on commit when the day is blocked or held by another booking.
        """
        self._stage(
            ChangeOp.CLAIM_DATE,
            date=day,
            booking_id=booking_id,
            reason=reason,
        )

    def release_booking_dates(self, booking_id: str) -> None:
        """Make every day held by the booking available again."""
        self._stage(ChangeOp.RELEASE_BOOKING_DATES, booking_id=booking_id)

    def set_date_block(self, day: date, is_available: bool, reason: Optional[str]) -> None:
        """Administrative block or unblock; refused for booking-held days."""
        self._stage(
            ChangeOp.SET_DATE_BLOCK,
            date=day,
            is_available=is_available,
            reason=None if is_available else reason,
        )

    # ========== Contacts ==========

    def insert_contact(self, contact: ContactSubmission) -> None:
        self._stage(ChangeOp.INSERT_CONTACT, row=contact.to_row())

    def update_contact(self, contact_id: str, changes: Dict[str, Any]) -> None:
        self._stage(ChangeOp.UPDATE_CONTACT, id=contact_id, changes=changes)


class BookingStore(ABC):
    """Persistence for bookings, calendar days and contact submissions."""

    def unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self)

    @abstractmethod
    async def apply_changes(self, changes: List[Change]) -> None:
        """
        Apply changes as one transaction.

        Raises:
            BookingSystemError subclasses describing the first failing change
        """

    @abstractmethod
    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        """Get booking by ID."""

    @abstractmethod
    async def get_booking_by_reference(self, reference: str) -> Optional[Booking]:
        """Get booking by its human-facing reference."""

    @abstractmethod
    async def list_bookings(
        self,
        status: Optional[BookingStatus] = None,
        event_from: Optional[date] = None,
        event_to: Optional[date] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        newest_first: bool = False,
    ) -> List[Booking]:
        """
        List bookings.

        Ordered by event date ascending (then creation time), or by creation
        time descending when ``newest_first`` is set. Date bounds are
        inclusive.
        """

    @abstractmethod
    async def get_calendar_day(self, day: date) -> Optional[CalendarDay]:
        """Get the availability row of a day, if one exists."""

    @abstractmethod
    async def get_calendar_days_for_booking(self, booking_id: str) -> List[CalendarDay]:
        """Rows currently linked to a booking."""

    @abstractmethod
    async def list_calendar_days(
        self, start: date, end: date, available: Optional[bool] = None
    ) -> List[CalendarDay]:
        """Rows between start and end inclusive, ordered by date."""

    @abstractmethod
    async def get_contact(self, contact_id: str) -> Optional[ContactSubmission]:
        """Get contact submission by ID."""

    @abstractmethod
    async def list_contacts(
        self,
        is_read: Optional[bool] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[ContactSubmission]:
        """Contact submissions, newest first."""
