"""Booking notifications."""

from .notifier import LoggingNotifier, Notifier, notify_booking_created

__all__ = ["LoggingNotifier", "Notifier", "notify_booking_created"]
