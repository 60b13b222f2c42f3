"""
In-process store used for development and tests.

Committed state is only replaced once every change in a unit of work has
been applied to a working copy, so a failing change leaves nothing behind.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from db.base import BookingStore, Change, ChangeOp
from models.booking import Booking, BookingStatus
from models.calendar import CalendarDay
from models.contact import ContactSubmission
from utils.datetime_utils import parse_date, utc_now
from utils.exceptions import (
    BookingNotFoundError,
    ContactNotFoundError,
    ConcurrentUpdateError,
    DatabaseError,
    DateHeldByBookingError,
    DateUnavailableError,
    DuplicateReferenceError,
)

logger = logging.getLogger(__name__)


@dataclass
class _State:
    bookings: Dict[str, Booking] = field(default_factory=dict)
    calendar: Dict[date, CalendarDay] = field(default_factory=dict)
    contacts: Dict[str, ContactSubmission] = field(default_factory=dict)

    def copy(self) -> "_State":
        # Models are replaced, never mutated, so shallow copies are enough
        return _State(dict(self.bookings), dict(self.calendar), dict(self.contacts))


class InMemoryStore(BookingStore):
    """Dictionary-backed store with atomic unit-of-work commits."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._state = _State()
        self._clock = clock
        self._handlers = {
            ChangeOp.INSERT_BOOKING: self._insert_booking,
            ChangeOp.UPDATE_BOOKING: self._update_booking,
            ChangeOp.DELETE_BOOKING: self._delete_booking,
            ChangeOp.CLAIM_DATE: self._claim_date,
            ChangeOp.RELEASE_BOOKING_DATES: self._release_booking_dates,
            ChangeOp.SET_DATE_BLOCK: self._set_date_block,
            ChangeOp.INSERT_CONTACT: self._insert_contact,
            ChangeOp.UPDATE_CONTACT: self._update_contact,
        }

    async def apply_changes(self, changes: List[Change]) -> None:
        working = self._state.copy()
        for change in changes:
            self._handlers[change.op](working, change.payload)
        self._state = working
        logger.debug(f"Applied {len(changes)} changes")

    # ========== Change handlers ==========

    def _insert_booking(self, state: _State, payload: dict) -> None:
        booking = Booking.model_validate(payload["row"])
        if booking.id in state.bookings:
            raise DatabaseError(f"Booking {booking.id} already exists")
        if any(
            b.booking_reference == booking.booking_reference
            for b in state.bookings.values()
        ):
            raise DuplicateReferenceError(
                f"Booking reference {booking.booking_reference} already exists"
            )
        state.bookings[booking.id] = booking

    def _update_booking(self, state: _State, payload: dict) -> None:
        current = state.bookings.get(payload["id"])
        if current is None:
            raise BookingNotFoundError()

        expected = payload.get("expected_status")
        if expected is not None and current.status != BookingStatus(expected):
            raise ConcurrentUpdateError(
                f"Booking status changed to {current.status.value} by another request"
            )

        row = current.to_row()
        row.update(payload["changes"])
        state.bookings[current.id] = Booking.model_validate(row)

    def _delete_booking(self, state: _State, payload: dict) -> None:
        booking_id = payload["id"]
        if booking_id not in state.bookings:
            raise BookingNotFoundError()
        if any(row.booking_id == booking_id for row in state.calendar.values()):
            raise DatabaseError(f"Booking {booking_id} still holds calendar dates")
        del state.bookings[booking_id]

    def _claim_date(self, state: _State, payload: dict) -> None:
        day = parse_date(payload["date"])
        booking_id = payload["booking_id"]
        if booking_id not in state.bookings:
            raise DatabaseError(f"Cannot hold {day}: booking {booking_id} does not exist")

        existing = state.calendar.get(day)
        if (
            existing is not None
            and not existing.is_available
            and existing.booking_id != booking_id
        ):
            raise DateUnavailableError(f"Date {day.isoformat()} is no longer available")

        state.calendar[day] = CalendarDay(
            date=day,
            is_available=False,
            blocked_reason=payload["reason"],
            booking_id=booking_id,
            updated_at=self._clock(),
        )

    def _release_booking_dates(self, state: _State, payload: dict) -> None:
        booking_id = payload["booking_id"]
        for day, row in list(state.calendar.items()):
            if row.booking_id == booking_id:
                state.calendar[day] = CalendarDay(date=day, updated_at=self._clock())

    def _set_date_block(self, state: _State, payload: dict) -> None:
        day = parse_date(payload["date"])
        existing = state.calendar.get(day)
        if existing is not None and existing.is_held_by_booking:
            raise DateHeldByBookingError(
                f"Date {day.isoformat()} is held by a booking and cannot be changed"
            )

        state.calendar[day] = CalendarDay(
            date=day,
            is_available=payload["is_available"],
            blocked_reason=payload["reason"],
            updated_at=self._clock(),
        )

    def _insert_contact(self, state: _State, payload: dict) -> None:
        contact = ContactSubmission.model_validate(payload["row"])
        if contact.id in state.contacts:
            raise DatabaseError(f"Contact submission {contact.id} already exists")
        state.contacts[contact.id] = contact

    def _update_contact(self, state: _State, payload: dict) -> None:
        current = state.contacts.get(payload["id"])
        if current is None:
            raise ContactNotFoundError()
        row = current.to_row()
        row.update(payload["changes"])
        state.contacts[current.id] = ContactSubmission.model_validate(row)

    # ========== Reads ==========

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        booking = self._state.bookings.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    async def get_booking_by_reference(self, reference: str) -> Optional[Booking]:
        for booking in self._state.bookings.values():
            if booking.booking_reference == reference:
                return booking.model_copy(deep=True)
        return None

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
        bookings = [
            b for b in self._state.bookings.values()
            if (status is None or b.status == status)
            and (event_from is None or b.event_date >= event_from)
            and (event_to is None or b.event_date <= event_to)
            and (created_from is None or b.created_at >= created_from)
            and (created_to is None or b.created_at <= created_to)
        ]

        if newest_first:
            bookings.sort(key=lambda b: b.created_at, reverse=True)
        else:
            bookings.sort(key=lambda b: (b.event_date, b.created_at))

        end = None if limit is None else offset + limit
        return [b.model_copy(deep=True) for b in bookings[offset:end]]

    async def get_calendar_day(self, day: date) -> Optional[CalendarDay]:
        row = self._state.calendar.get(day)
        return row.model_copy() if row else None

    async def get_calendar_days_for_booking(self, booking_id: str) -> List[CalendarDay]:
        rows = [r for r in self._state.calendar.values() if r.booking_id == booking_id]
        return [r.model_copy() for r in sorted(rows, key=lambda r: r.date)]

    async def list_calendar_days(
        self, start: date, end: date, available: Optional[bool] = None
    ) -> List[CalendarDay]:
        rows = [
            r for r in self._state.calendar.values()
            if start <= r.date <= end
            and (available is None or r.is_available == available)
        ]
        return [r.model_copy() for r in sorted(rows, key=lambda r: r.date)]

    async def get_contact(self, contact_id: str) -> Optional[ContactSubmission]:
        contact = self._state.contacts.get(contact_id)
        return contact.model_copy() if contact else None

    async def list_contacts(
        self,
        is_read: Optional[bool] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[ContactSubmission]:
        contacts = [
            c for c in self._state.contacts.values()
            if (is_read is None or c.is_read == is_read)
            and (created_from is None or c.created_at >= created_from)
            and (created_to is None or c.created_at <= created_to)
        ]
        contacts.sort(key=lambda c: c.created_at, reverse=True)
        end = None if limit is None else offset + limit
        return [c.model_copy() for c in contacts[offset:end]]

