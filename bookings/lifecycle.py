"""
Booking lifecycle manager.

Creates, transitions, edits and deletes bookings while keeping the calendar
consistent: every write that touches both a booking and its calendar day
goes through a single unit of work, so either both changes land or neither
does.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Optional
from uuid import uuid4

from bookings.reference import generate_booking_reference
from bookings.results import OperationResult, run_operation
from bookings.state_machine import DELETABLE_STATUSES, assert_transition, parse_status
from bookings.validation import validate_booking_request, validate_booking_update
from config import Settings
from db.base import BookingStore
from models.booking import Booking, BookingStatus, PaymentStatus
from notifications import Notifier, notify_booking_created
from utils.constants import BOOKED_EVENT_REASON
from utils.datetime_utils import utc_now
from utils.exceptions import (
    BookingDeletionError,
    BookingNotFoundError,
    DuplicateReferenceError,
    ValidationError,
)
from utils.validation import validate_uuid

logger = logging.getLogger(__name__)

ReferenceGenerator = Callable[[str, datetime], str]


class BookingLifecycleManager:
    """
    Orchestrates booking operations against the store.

    Every public method returns an ``OperationResult``; expected failures
    (validation, not found, invalid transition, conflicts, storage errors)
    never raise.
    """

    def __init__(
        self,
        store: BookingStore,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
        reference_generator: ReferenceGenerator = generate_booking_reference,
        notifier: Optional[Notifier] = None,
    ):
        self.store = store
        self.settings = settings
        self._clock = clock
        self._generate_reference = reference_generator
        self._notifier = notifier

    def today(self) -> date:
        return self._clock().date()

    # ========== Public operations ==========

    async def create(self, payload: Any) -> OperationResult[Booking]:
        """Validate a request and store a PENDING booking holding its date."""
        return await run_operation("create booking", lambda: self._create(payload))

    async def get(self, booking_id: str) -> OperationResult[Booking]:
        return await run_operation("get booking", lambda: self._require_booking(booking_id))

    async def get_by_reference(self, reference: str) -> OperationResult[Booking]:
        return await run_operation(
            "get booking by reference", lambda: self._require_by_reference(reference)
        )

    async def update_status(self, booking_id: str, new_status: Any) -> OperationResult[Booking]:
        """Move a booking to a new status; the calendar is left untouched."""
        return await run_operation(
            "update booking status", lambda: self._update_status(booking_id, new_status)
        )

    async def update_fields(self, booking_id: str, payload: Any) -> OperationResult[Booking]:
        """Apply a partial update; a status change still has to be a valid transition."""
        return await run_operation(
            "update booking", lambda: self._update_fields(booking_id, payload)
        )

    async def delete(self, booking_id: str) -> OperationResult[None]:
        """Delete a non-active booking and release its calendar date."""
        return await run_operation("delete booking", lambda: self._delete(booking_id))

    # ========== Implementation ==========

    async def _create(self, payload: Any) -> Booking:
        request = validate_booking_request(payload, today=self.today())
        attempts = self.settings.reference_max_attempts

        for attempt in range(1, attempts + 1):
            now = self._clock()
            booking = Booking(
                id=str(uuid4()),
                booking_reference=self._generate_reference(
                    self.settings.booking_reference_prefix, now
                ),
                **request.model_dump(),
                status=BookingStatus.PENDING,
                payment_status=PaymentStatus.UNPAID,
                created_at=now,
                updated_at=now,
            )
            try:
                async with self.store.unit_of_work() as uow:
                    uow.insert_booking(booking)
                    uow.claim_date(booking.event_date, booking.id, BOOKED_EVENT_REASON)
            except DuplicateReferenceError:
                if attempt == attempts:
                    raise
                logger.warning(
                    f"Booking reference {booking.booking_reference} already taken, "
                    f"retrying ({attempt}/{attempts})"
                )
                continue

            logger.info(
                f"Booking {booking.booking_reference} created for "
                f"{booking.event_date.isoformat()}"
            )
            await notify_booking_created(self._notifier, booking)
            return booking

    async def _update_status(self, booking_id: str, new_status: Any) -> Booking:
        status = parse_status(new_status)
        booking = await self._require_booking(booking_id)
        assert_transition(booking.status, status)

        now = self._clock()
        async with self.store.unit_of_work() as uow:
            uow.update_booking(
                booking.id,
                {"status": status, "updated_at": now},
                expected_status=booking.status,
            )

        if status != booking.status:
            logger.info(
                f"Booking {booking.booking_reference}: "
                f"{booking.status.value} -> {status.value}"
            )
        return booking.model_copy(update={"status": status, "updated_at": now})

    async def _update_fields(self, booking_id: str, payload: Any) -> Booking:
        if isinstance(payload, dict) and "status" in payload:
            payload = {**payload, "status": parse_status(payload["status"])}
        update = validate_booking_update(payload)
        booking = await self._require_booking(booking_id)
        changes = update.changes()

        if "status" in changes:
            assert_transition(booking.status, changes["status"])

        new_date = changes.get("event_date", booking.event_date)
        date_changed = new_date != booking.event_date
        if date_changed and new_date <= self.today():
            raise ValidationError("validation error: Event date must be in the future")

        start = changes.get("event_start_time", booking.event_start_time)
        end = changes.get("event_end_time", booking.event_end_time)
        if start is not None and end is not None and end <= start:
            raise ValidationError("validation error: Event end time must be after start time")

        changes["updated_at"] = self._clock()
        async with self.store.unit_of_work() as uow:
            uow.update_booking(booking.id, changes, expected_status=booking.status)
            if date_changed:
                uow.release_booking_dates(booking.id)
                uow.claim_date(new_date, booking.id, BOOKED_EVENT_REASON)

        if date_changed:
            logger.info(
                f"Booking {booking.booking_reference} moved from "
                f"{booking.event_date.isoformat()} to {new_date.isoformat()}"
            )
        return booking.model_copy(update=changes)

    async def _delete(self, booking_id: str) -> None:
        booking = await self._require_booking(booking_id)

        if booking.status not in DELETABLE_STATUSES:
            label = booking.status.value.lower().replace("_", " ")
            raise BookingDeletionError(
                f"Cannot delete {label} booking. Cancel the booking first."
            )

        async with self.store.unit_of_work() as uow:
            # Fails the whole unit if the status moved since it was read
            uow.update_booking(
                booking.id, {"updated_at": self._clock()}, expected_status=booking.status
            )
            uow.release_booking_dates(booking.id)
            uow.delete_booking(booking.id)

        logger.info(f"Booking {booking.booking_reference} deleted")

    async def _require_booking(self, booking_id: str) -> Booking:
        if not validate_uuid(booking_id):
            raise BookingNotFoundError()
        booking = await self.store.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError()
        return booking

    async def _require_by_reference(self, reference: str) -> Booking:
        booking = await self.store.get_booking_by_reference(reference) if reference else None
        if booking is None:
            raise BookingNotFoundError()
        return booking
