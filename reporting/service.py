"""
Read-only queries and aggregations for the public calendar and the admin
dashboard.

Dashboard and analytics sections degrade to zero/empty defaults when the
store fails, so the admin UI renders a blank state instead of an error.
"""

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from bookings.calendar import to_date
from bookings.results import OperationResult, run_operation
from bookings.state_machine import parse_status
from config import Settings
from db.base import BookingStore
from models.booking import CENTS, Booking, BookingStatus
from utils.constants import (
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
    RECENT_BOOKINGS_LIMIT,
    TREND_MONTHS,
    UPCOMING_EVENTS_DAYS,
    UPCOMING_EVENTS_LIMIT,
)
from utils.datetime_utils import month_bounds, previous_month, utc_now
from utils.exceptions import BookingSystemError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ANALYTICS_PERIODS = ("7d", "30d", "90d", "1y")
REVENUE_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)
RECENT_CONTACTS_LIMIT = 5
ZERO = Decimal("0.00")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENTS)


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def summarize_revenue(bookings: Iterable[Booking]) -> Dict[str, Any]:
    """Revenue over confirmed and completed bookings."""
    counted = [b for b in bookings if b.status in REVENUE_STATUSES]
    total = sum((b.total_amount or ZERO for b in counted), ZERO)
    deposits = sum((b.deposit_amount or ZERO for b in counted), ZERO)
    return {
        "totalRevenue": _money(total),
        "totalDeposits": _money(deposits),
        "confirmedBookings": len(counted),
        "averageBookingValue": _money(total / len(counted)) if counted else ZERO,
    }


def period_start(period: str, now: datetime) -> datetime:
    if period == "1y":
        try:
            return now.replace(year=now.year - 1)
        except ValueError:
            # Feb 29
            return now.replace(year=now.year - 1, day=28)
    return now - timedelta(days=int(period[:-1]))


class ReportingService:
    """Queries over bookings, calendar days and contact submissions."""

    def __init__(
        self,
        store: BookingStore,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.settings = settings
        self._clock = clock

    # ========== Listings ==========

    async def get_bookings_by_date_range(self, start: Any, end: Any) -> OperationResult[List[Booking]]:
        """Bookings with event date in [start, end] inclusive, by event date."""
        return await run_operation(
            "list bookings by date range", lambda: self._by_date_range(start, end)
        )

    async def get_available_dates(self, month: Any, year: Any) -> OperationResult[List[str]]:
        """Dates in the month explicitly marked available."""
        return await run_operation(
            "get available dates", lambda: self._available_dates(month, year)
        )

    async def list_bookings(
        self,
        status: Optional[Any] = None,
        date_from: Optional[Any] = None,
        date_to: Optional[Any] = None,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> OperationResult[List[Booking]]:
        return await run_operation(
            "list bookings",
            lambda: self._list(status, date_from, date_to, limit, offset),
        )

    async def _by_date_range(self, start: Any, end: Any) -> List[Booking]:
        first = to_date(start, "Start date")
        last = to_date(end, "End date")
        if first > last:
            raise ValidationError("validation error: Start date must be before end date")
        return await self.store.list_bookings(event_from=first, event_to=last)

    async def _available_dates(self, month: Any, year: Any) -> List[str]:
        month_num = self._parse_int(month, "Month")
        year_num = self._parse_int(year, "Year")
        if not 1 <= month_num <= 12:
            raise ValidationError("Invalid month parameter (must be 1-12)")
        low, high = self.settings.calendar_min_year, self.settings.calendar_max_year
        if not low <= year_num <= high:
            raise ValidationError(f"Invalid year parameter (must be {low}-{high})")

        first, last = month_bounds(year_num, month_num)
        rows = await self.store.list_calendar_days(first, last, available=True)
        return [row.date.isoformat() for row in rows]

    async def _list(
        self,
        status: Optional[Any],
        date_from: Optional[Any],
        date_to: Optional[Any],
        limit: int,
        offset: int,
    ) -> List[Booking]:
        if limit < 1 or limit > MAX_LIST_LIMIT or offset < 0:
            raise ValidationError(
                f"validation error: limit must be 1-{MAX_LIST_LIMIT} and offset non-negative"
            )
        first = to_date(date_from, "Start date") if date_from else None
        last = to_date(date_to, "End date") if date_to else None
        if first and last and first > last:
            raise ValidationError("validation error: Start date must be before end date")

        return await self.store.list_bookings(
            status=parse_status(status) if status else None,
            event_from=first,
            event_to=last,
            limit=limit,
            offset=offset,
            newest_first=True,
        )

    @staticmethod
    def _parse_int(value: Any, label: str) -> int:
        if isinstance(value, bool):
            raise ValidationError(f"{label} must be a number")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{label} must be a number") from None

    # ========== Dashboard ==========

    async def _load(self, label: str, loader: Callable[[], Awaitable[T]], default: T) -> T:
        try:
            return await loader()
        except BookingSystemError as e:
            logger.error(f"Failed to load {label}, using default: {e}", exc_info=True)
            return default

    async def get_dashboard(self) -> Dict[str, Any]:
        """Headline statistics for the admin dashboard."""
        now = self._clock()
        today = now.date()

        bookings: List[Booking] = await self._load(
            "dashboard bookings", lambda: self.store.list_bookings(), []
        )
        unread = await self._load(
            "unread contacts", lambda: self.store.list_contacts(is_read=False), []
        )
        recent_contacts = await self._load(
            "recent contacts",
            lambda: self.store.list_contacts(limit=RECENT_CONTACTS_LIMIT),
            [],
        )

        by_status = Counter(b.status for b in bookings)
        month_start, _ = month_bounds(today.year, today.month)
        prev_start, prev_end = month_bounds(*previous_month(today.year, today.month))
        horizon = today + timedelta(days=UPCOMING_EVENTS_DAYS)

        this_month = sum(1 for b in bookings if b.created_at.date() >= month_start)
        last_month = sum(1 for b in bookings if prev_start <= b.created_at.date() <= prev_end)
        upcoming = [b for b in bookings if today <= b.event_date <= horizon]
        upcoming_active = [b for b in upcoming if b.status.is_active]
        recent = sorted(bookings, key=lambda b: b.created_at, reverse=True)

        return {
            "stats": {
                "totalBookings": len(bookings),
                "pendingBookings": by_status[BookingStatus.PENDING],
                "confirmedBookings": by_status[BookingStatus.CONFIRMED],
                "inProgressBookings": by_status[BookingStatus.IN_PROGRESS],
                "completedBookings": by_status[BookingStatus.COMPLETED],
                "cancelledBookings": by_status[BookingStatus.CANCELLED],
                "thisMonthBookings": this_month,
                "upcomingEvents": len(upcoming),
                "unreadContacts": len(unread),
            },
            "revenue": summarize_revenue(bookings),
            "growth": {
                "thisMonth": this_month,
                "lastMonth": last_month,
                "percentChange": self._growth(this_month, last_month),
            },
            "trends": {"monthlyBookings": self._monthly_trend(bookings, today)},
            "recentBookings": [b.to_api() for b in recent[:RECENT_BOOKINGS_LIMIT]],
            "upcomingEvents": [
                {
                    "id": b.id,
                    "bookingReference": b.booking_reference,
                    "clientName": b.client_name,
                    "eventDate": b.event_date.isoformat(),
                    "eventType": b.event_type,
                    "status": b.status.value,
                }
                for b in upcoming_active[:UPCOMING_EVENTS_LIMIT]
            ],
            "recentContacts": [c.to_api() for c in recent_contacts],
        }

    @staticmethod
    def _growth(current: int, previous: int) -> float:
        if previous == 0:
            return 100.0 if current else 0.0
        return round((current - previous) / previous * 100, 1)

    @staticmethod
    def _monthly_trend(bookings: List[Booking], today: date) -> Dict[str, int]:
        year, month = today.year, today.month
        keys = []
        for _ in range(TREND_MONTHS):
            keys.append(f"{year:04d}-{month:02d}")
            year, month = previous_month(year, month)
        months = dict.fromkeys(reversed(keys), 0)

        for booking in bookings:
            key = booking.created_at.strftime("%Y-%m")
            if key in months:
                months[key] += 1
        return months

    # ========== Analytics ==========

    async def get_analytics(self, period: str = "30d") -> OperationResult[Dict[str, Any]]:
        return await run_operation("get analytics", lambda: self._analytics(period))

    async def _analytics(self, period: str) -> Dict[str, Any]:
        if period not in ANALYTICS_PERIODS:
            raise ValidationError(
                f"Invalid period (must be one of {', '.join(ANALYTICS_PERIODS)})"
            )

        now = self._clock()
        start = period_start(period, now)
        bookings: List[Booking] = await self._load(
            "analytics bookings",
            lambda: self.store.list_bookings(created_from=start, created_to=now),
            [],
        )
        contacts = await self._load(
            "analytics contacts",
            lambda: self.store.list_contacts(created_from=start, created_to=now),
            [],
        )

        by_status: Dict[str, Dict[str, Any]] = {}
        for b in bookings:
            entry = by_status.setdefault(b.status.value, {"count": 0, "revenue": ZERO})
            entry["count"] += 1
            entry["revenue"] = _money(entry["revenue"] + (b.total_amount or ZERO))

        by_event_type = []
        for event_type in sorted({b.event_type for b in bookings}):
            matching = [b for b in bookings if b.event_type == event_type]
            priced = [b.total_amount for b in matching if b.total_amount is not None]
            total = sum(priced, ZERO)
            by_event_type.append(
                {
                    "eventType": event_type,
                    "count": len(matching),
                    "totalRevenue": _money(total),
                    "averageRevenue": _money(total / len(priced)) if priced else ZERO,
                }
            )

        daily = Counter(b.created_at.date().isoformat() for b in bookings)
        services = Counter(service for b in bookings for service in b.services)
        sources = Counter(c.source for c in contacts)

        revenue_bookings = [b for b in bookings if b.status in REVENUE_STATUSES]
        priced_revenue = [b.total_amount for b in revenue_bookings if b.total_amount is not None]
        revenue_total = sum(priced_revenue, ZERO)
        confirmed = len(revenue_bookings)

        return {
            "period": period,
            "dateRange": {
                "startDate": start.date().isoformat(),
                "endDate": now.date().isoformat(),
            },
            "analytics": {
                "bookings": {
                    "byStatus": by_status,
                    "byEventType": by_event_type,
                    "dailyTrends": [
                        {"date": day, "count": count} for day, count in sorted(daily.items())
                    ],
                },
                "services": {
                    "popularity": [
                        {"service": service, "count": count}
                        for service, count in services.most_common()
                    ],
                },
                "revenue": {
                    "total": _money(revenue_total),
                    "deposits": _money(
                        sum((b.deposit_amount or ZERO for b in revenue_bookings), ZERO)
                    ),
                    "average": _money(revenue_total / len(priced_revenue))
                    if priced_revenue
                    else ZERO,
                    "bookingsCount": confirmed,
                },
                "contacts": {
                    "bySource": [
                        {"source": source, "count": count}
                        for source, count in sorted(sources.items())
                    ],
                },
                "conversion": {
                    "contacts": len(contacts),
                    "bookings": len(bookings),
                    "confirmed": confirmed,
                    "contactToBooking": _percent(len(bookings), len(contacts)),
                    "bookingToConfirmed": _percent(confirmed, len(bookings)),
                },
            },
        }
