"""
Administrative calendar operations.

Admin blocks live in the same table as booking holds but never carry a
booking link. A day held by a booking cannot be blocked or unblocked here;
the hold is released only by deleting the booking.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from bookings.results import OperationResult, run_operation
from bookings.validation import validate_availability_update
from db.base import BookingStore
from models.calendar import AvailabilityUpdate, CalendarDay
from utils.constants import MAINTENANCE_REASON, MAX_BLOCK_RANGE_DAYS
from utils.datetime_utils import iter_days, parse_date
from utils.exceptions import DatabaseError, ValidationError
from utils.validation import sanitize_text

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_REASON = "Unavailable"


def to_date(value: Any, label: str = "Date") -> date:
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationError(f"validation error: {label} is invalid") from None


class CalendarService:
    """Admin blocks, unblocks and calendar listing."""

    def __init__(self, store: BookingStore):
        self.store = store

    async def block_date(self, day: Any, reason: Optional[str] = None) -> OperationResult[CalendarDay]:
        return await run_operation(
            "block date", lambda: self._set_block(to_date(day), False, reason)
        )

    async def unblock_date(self, day: Any) -> OperationResult[CalendarDay]:
        return await run_operation(
            "unblock date", lambda: self._set_block(to_date(day), True, None)
        )

    async def set_maintenance_block(self, day: Any) -> OperationResult[CalendarDay]:
        return await self.block_date(day, MAINTENANCE_REASON)

    async def update_availability(
        self, day: Any, available: bool, reason: Optional[str] = None
    ) -> OperationResult[CalendarDay]:
        return await run_operation(
            "update availability", lambda: self._set_block(to_date(day), available, reason)
        )

    async def apply_updates(self, payload: Any) -> OperationResult[List[CalendarDay]]:
        """
        Apply one or many availability changes from a raw payload.

        All changes are applied together; a single booking-held date fails
        the whole request.
        """
        return await run_operation("bulk availability update", lambda: self._apply_updates(payload))

    async def block_range(
        self, start: Any, end: Any, reason: Optional[str] = None
    ) -> OperationResult[Dict[str, Any]]:
        """
        Block every day from start to end inclusive.

        Booking-held days are skipped and reported per date.
        """
        return await run_operation(
            "block date range", lambda: self._block_range(start, end, reason)
        )

    async def get_calendar(self, start: Any, end: Any) -> OperationResult[List[dict]]:
        """Calendar rows in range, with a summary of the holding booking."""
        return await run_operation("get calendar", lambda: self._get_calendar(start, end))

    # ========== Implementation ==========

    async def _set_block(self, day: date, available: bool, reason: Optional[str]) -> CalendarDay:
        reason = None if available else (sanitize_text(reason) or DEFAULT_BLOCK_REASON)
        async with self.store.unit_of_work() as uow:
            uow.set_date_block(day, available, reason)

        logger.info(
            f"Date {day.isoformat()} "
            + ("unblocked" if available else f"blocked ({reason})")
        )
        return await self._read_day(day)

    async def _apply_updates(self, payload: Any) -> List[CalendarDay]:
        bulk = validate_availability_update(payload)
        updates: List[AvailabilityUpdate] = bulk.updates

        async with self.store.unit_of_work() as uow:
            for update in updates:
                reason = None if update.available else (update.blocked_reason or DEFAULT_BLOCK_REASON)
                uow.set_date_block(update.date, update.available, reason)

        logger.info(f"Applied {len(updates)} availability updates")
        return [await self._read_day(update.date) for update in updates]

    async def _block_range(self, start: Any, end: Any, reason: Optional[str]) -> Dict[str, Any]:
        first = to_date(start, "Start date")
        last = to_date(end, "End date")
        if last < first:
            raise ValidationError("validation error: End date must not be before start date")
        if (last - first).days + 1 > MAX_BLOCK_RANGE_DAYS:
            raise ValidationError(
                f"validation error: Date range cannot exceed {MAX_BLOCK_RANGE_DAYS} days"
            )

        reason = sanitize_text(reason) or DEFAULT_BLOCK_REASON
        held = {
            row.date
            for row in await self.store.list_calendar_days(first, last)
            if row.is_held_by_booking
        }

        results: Dict[str, Dict[str, Any]] = {}
        async with self.store.unit_of_work() as uow:
            for day in iter_days(first, last):
                if day in held:
                    results[day.isoformat()] = {
                        "success": False,
                        "error": "Date is held by a booking",
                    }
                    continue
                uow.set_date_block(day, False, reason)
                results[day.isoformat()] = {"success": True, "error": None}

        blocked = sum(1 for r in results.values() if r["success"])
        logger.info(
            f"Blocked {blocked} days from {first.isoformat()} to {last.isoformat()}, "
            f"{len(held)} held by bookings"
        )
        return {
            "results": results,
            "summary": {"blocked": blocked, "skipped": len(held), "total": len(results)},
        }

    async def _get_calendar(self, start: Any, end: Any) -> List[dict]:
        first = to_date(start, "Start date")
        last = to_date(end, "End date")
        if last < first:
            raise ValidationError("validation error: End date must not be before start date")

        rows = await self.store.list_calendar_days(first, last)
        bookings = {
            b.id: b for b in await self.store.list_bookings(event_from=first, event_to=last)
        }

        calendar = []
        for row in rows:
            entry = row.model_dump(mode="json", by_alias=True)
            booking = bookings.get(row.booking_id) if row.booking_id else None
            entry["booking"] = (
                {
                    "id": booking.id,
                    "bookingReference": booking.booking_reference,
                    "clientName": booking.client_name,
                    "eventType": booking.event_type,
                    "status": booking.status.value,
                }
                if booking
                else None
            )
            calendar.append(entry)
        return calendar

    async def _read_day(self, day: date) -> CalendarDay:
        row = await self.store.get_calendar_day(day)
        if row is None:
            raise DatabaseError(f"Calendar row for {day.isoformat()} missing after write")
        return row

