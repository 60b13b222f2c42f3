"""
Supabase-backed booking store.

Reads use the PostgREST table API. Writes go through the
``apply_booking_changes`` database function (see
``db/migrations/001_booking_calendar.sql``), which applies a whole unit of
work inside one transaction and raises a dedicated SQLSTATE per failure.

Row Level Security (RLS) Notes:
==============================
This store uses the service key which bypasses RLS. Public traffic only
reaches the database through the API server, so policies should deny
direct access to ``bookings``, ``calendar_availability`` and
``contact_submissions`` for the anon role.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, List, Optional

from postgrest.exceptions import APIError
from supabase import Client as SupabaseClientType
from supabase import create_client

from db.base import BookingStore, Change
from models.booking import Booking, BookingStatus
from models.calendar import CalendarDay
from models.contact import ContactSubmission
from utils.datetime_utils import parse_iso_datetime, to_iso_string
from utils.exceptions import (
    BookingNotFoundError,
    BookingSystemError,
    ConcurrentUpdateError,
    ContactNotFoundError,
    DatabaseError,
    DateHeldByBookingError,
    DateUnavailableError,
    DuplicateReferenceError,
)

logger = logging.getLogger(__name__)

APPLY_CHANGES_FUNCTION = "apply_booking_changes"

# Rows per request when reading a whole table; matches Supabase's default max-rows
PAGE_SIZE = 1000

# SQLSTATE codes raised by apply_booking_changes
_ERROR_CODES = {
    "BK404": BookingNotFoundError,
    "BK409": DateUnavailableError,
    "BK412": ConcurrentUpdateError,
    "BK423": DateHeldByBookingError,
    "BKC04": ContactNotFoundError,
}
UNIQUE_VIOLATION = "23505"


def map_api_error(error: APIError) -> BookingSystemError:
    """Translate a PostgREST error into the booking error taxonomy."""
    code = getattr(error, "code", None)
    message = getattr(error, "message", None) or str(error)

    if code in _ERROR_CODES:
        return _ERROR_CODES[code](message)
    if code == UNIQUE_VIOLATION:
        if "booking_reference" in message:
            return DuplicateReferenceError(message)
        if "calendar_availability" in message:
            return DateUnavailableError(message)
    return DatabaseError(f"Database error {code}: {message}")


class SupabaseStore(BookingStore):
    """
    Supabase database store.

    Uses service_role key which bypasses RLS for admin operations.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        client: Optional[SupabaseClientType] = None,
    ):
        if client is None:
            if not url or not key:
                raise DatabaseError("Supabase URL and key are required")
            client = create_client(url, key)
        self.client: SupabaseClientType = client

    # ========== Writes ==========

    async def apply_changes(self, changes: List[Change]) -> None:
        """Apply a unit of work in a single database transaction."""
        try:
            self.client.rpc(
                APPLY_CHANGES_FUNCTION,
                {"changes": [change.to_dict() for change in changes]},
            ).execute()
        except APIError as e:
            mapped = map_api_error(e)
            logger.warning(f"Unit of work rejected by database: {mapped}")
            raise mapped from e
        except Exception as e:
            raise DatabaseError(f"Failed to apply changes: {e}") from e

    # ========== Booking Operations ==========

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        """Get booking by ID."""
        try:
            response = (
                self.client.table("bookings").select("*").eq("id", booking_id).execute()
            )

            if response.data:
                return self._parse_booking(response.data[0])
            return None
        except Exception as e:
            raise DatabaseError(f"Failed to get booking: {e}") from e

    async def get_booking_by_reference(self, reference: str) -> Optional[Booking]:
        """Get booking by reference."""
        try:
            response = (
                self.client.table("bookings")
                .select("*")
                .eq("booking_reference", reference)
                .execute()
            )

            if response.data:
                return self._parse_booking(response.data[0])
            return None
        except Exception as e:
            raise DatabaseError(f"Failed to get booking by reference: {e}") from e

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
        List bookings matching the filters.

        Args:
            status: Filter by booking status
            event_from: Earliest event date (inclusive)
            event_to: Latest event date (inclusive)
            created_from: Earliest creation time (inclusive)
            created_to: Latest creation time (inclusive)
            limit: Maximum number of bookings to return
            offset: Number of bookings to skip
            newest_first: Order by creation time descending

        Returns:
            List of bookings matching criteria
        """

        def build_query():
            query = self.client.table("bookings").select("*")

            if status:
                query = query.eq("status", status.value)
            if event_from:
                query = query.gte("event_date", event_from.isoformat())
            if event_to:
                query = query.lte("event_date", event_to.isoformat())
            if created_from:
                query = query.gte("created_at", to_iso_string(created_from))
            if created_to:
                query = query.lte("created_at", to_iso_string(created_to))

            if newest_first:
                query = query.order("created_at", desc=True)
            else:
                query = query.order("event_date", desc=False).order("created_at", desc=False)
            return query.order("id", desc=False)

        try:
            rows = self._fetch_rows(build_query, limit, offset)
            return [self._parse_booking(item) for item in rows]
        except Exception as e:
            raise DatabaseError(f"Failed to list bookings: {e}") from e

    # ========== Calendar Operations ==========

    async def get_calendar_day(self, day: date) -> Optional[CalendarDay]:
        """Get the availability row for a day."""
        try:
            response = (
                self.client.table("calendar_availability")
                .select("*")
                .eq("date", day.isoformat())
                .execute()
            )

            if response.data:
                return self._parse_calendar_day(response.data[0])
            return None
        except Exception as e:
            raise DatabaseError(f"Failed to get calendar day: {e}") from e

    async def get_calendar_days_for_booking(self, booking_id: str) -> List[CalendarDay]:
        """Get the days held by a booking."""
        try:
            response = (
                self.client.table("calendar_availability")
                .select("*")
                .eq("booking_id", booking_id)
                .order("date", desc=False)
                .execute()
            )
            return [self._parse_calendar_day(item) for item in response.data]
        except Exception as e:
            raise DatabaseError(f"Failed to get booking dates: {e}") from e

    async def list_calendar_days(
        self, start: date, end: date, available: Optional[bool] = None
    ) -> List[CalendarDay]:
        """Get availability rows in a date range."""
        try:
            query = (
                self.client.table("calendar_availability")
                .select("*")
                .gte("date", start.isoformat())
                .lte("date", end.isoformat())
            )
            if available is not None:
                query = query.eq("is_available", available)

            response = query.order("date", desc=False).execute()
            return [self._parse_calendar_day(item) for item in response.data]
        except Exception as e:
            raise DatabaseError(f"Failed to list calendar days: {e}") from e

    # ========== Contact Operations ==========

    async def get_contact(self, contact_id: str) -> Optional[ContactSubmission]:
        """Get contact submission by ID."""
        try:
            response = (
                self.client.table("contact_submissions")
                .select("*")
                .eq("id", contact_id)
                .execute()
            )

            if response.data:
                return self._parse_contact(response.data[0])
            return None
        except Exception as e:
            raise DatabaseError(f"Failed to get contact submission: {e}") from e

    async def list_contacts(
        self,
        is_read: Optional[bool] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[ContactSubmission]:
        """Get contact submissions, newest first."""

        def build_query():
            query = self.client.table("contact_submissions").select("*")

            if is_read is not None:
                query = query.eq("is_read", is_read)
            if created_from:
                query = query.gte("created_at", to_iso_string(created_from))
            if created_to:
                query = query.lte("created_at", to_iso_string(created_to))

            return query.order("created_at", desc=True).order("id", desc=False)

        try:
            rows = self._fetch_rows(build_query, limit, offset)
            return [self._parse_contact(item) for item in rows]
        except Exception as e:
            raise DatabaseError(f"Failed to list contact submissions: {e}") from e

    # ========== Helper Methods ==========

    def _fetch_rows(
        self, build_query: Callable[[], Any], limit: Optional[int], offset: int
    ) -> List[dict]:
        """
        Run a select, paging through every row when no limit is given.

        PostgREST truncates unranged selects at the project's max-rows
        setting, so unlimited reads are fetched ``PAGE_SIZE`` rows at a time.
        Each page rebuilds the query because builders accumulate parameters.
        """
        if limit is not None:
            return build_query().range(offset, offset + limit - 1).execute().data

        rows: List[dict] = []
        start = offset
        while True:
            page = build_query().range(start, start + PAGE_SIZE - 1).execute().data
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE

    def _parse_booking(self, item: dict) -> Booking:
        """
        Parse booking data from database response.

        Args:
            item: Raw booking data from database

        Returns:
            Parsed Booking object
        """
        item = item.copy()
        for field in ["created_at", "updated_at"]:
            if item.get(field):
                item[field] = parse_iso_datetime(item[field])
        return Booking(**item)

    def _parse_calendar_day(self, item: dict) -> CalendarDay:
        item = item.copy()
        if item.get("updated_at"):
            item["updated_at"] = parse_iso_datetime(item["updated_at"])
        return CalendarDay(**item)

    def _parse_contact(self, item: dict) -> ContactSubmission:
        item = item.copy()
        if item.get("created_at"):
            item["created_at"] = parse_iso_datetime(item["created_at"])
        return ContactSubmission(**item)
