"""Read-only reporting over bookings and the calendar."""

from .service import ANALYTICS_PERIODS, ReportingService, summarize_revenue

__all__ = ["ANALYTICS_PERIODS", "ReportingService", "summarize_revenue"]
