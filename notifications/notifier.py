"""
Outbound booking notifications.

Delivery itself is out of scope for this service; the default notifier only
records what would have been sent. A real mail sender implements the
``Notifier`` protocol and is passed to ``create_app``.
"""

import logging
from typing import Optional, Protocol

from models.booking import Booking

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def send_booking_confirmation(self, booking: Booking) -> bool: ...

    async def send_admin_notification(self, booking: Booking) -> bool: ...


class LoggingNotifier:
    """Notifier that writes messages to the log instead of sending them."""

    def __init__(self, admin_email: Optional[str] = None):
        self.admin_email = admin_email

    async def send_booking_confirmation(self, booking: Booking) -> bool:
        logger.info(
            f"Booking confirmation for {booking.booking_reference} "
            f"to {booking.client_email} ({booking.event_date.isoformat()})"
        )
        return True

    async def send_admin_notification(self, booking: Booking) -> bool:
        if not self.admin_email:
            logger.debug("Admin email not configured - skipping admin notification")
            return False
        logger.info(
            f"New booking {booking.booking_reference} for {booking.event_date.isoformat()} "
            f"notified to {self.admin_email}"
        )
        return True


async def notify_booking_created(notifier: Optional[Notifier], booking: Booking) -> None:
    """
    Send the client confirmation and the admin notification.

    Failures are logged and never propagated: the booking is already
    committed when this runs.
    """
    if notifier is None:
        return

    try:
        if not await notifier.send_booking_confirmation(booking):
            logger.warning(f"Booking confirmation not sent for {booking.booking_reference}")
    except Exception as e:
        logger.error(
            f"Failed to send booking confirmation for {booking.booking_reference}: {e}",
            exc_info=True,
        )

    try:
        await notifier.send_admin_notification(booking)
    except Exception as e:
        logger.error(
            f"Failed to send admin notification for {booking.booking_reference}: {e}",
            exc_info=True,
        )
