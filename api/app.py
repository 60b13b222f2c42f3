"""
aiohttp application factory for the booking API.

Every collaborator (store, notifier, rate limiter, clock) is passed in
explicitly so tests can swap in an in-memory store and a fixed clock.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from aiohttp import web
from aiohttp.web import Request, Response

from api import admin_routes, booking_routes, calendar_routes, contact_routes
from api.context import (
    CALENDAR_KEY,
    CONTACTS_KEY,
    LIFECYCLE_KEY,
    RATE_LIMITER_KEY,
    REPORTING_KEY,
    SETTINGS_KEY,
    STORE_KEY,
)
from api.responses import STATUS_BY_KIND, error_response, json_response, server_error_response
from bookings.calendar import CalendarService
from bookings.lifecycle import BookingLifecycleManager
from bookings.results import GENERIC_ERROR_MESSAGE
from config import Settings
from contacts.service import ContactService
from db import BookingStore, get_store
from notifications import LoggingNotifier, Notifier
from reporting.service import ReportingService
from utils.datetime_utils import utc_now
from utils.exceptions import BookingSystemError, ErrorKind
from utils.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

_START_TIME = time.time()


@web.middleware
async def security_headers_middleware(request: Request, handler):
    """
    Add security headers to all responses.

    - Prevents MIME type sniffing
    - Prevents clickjacking
    - Enables XSS protection
    - Enforces HTTPS in production
    - Keeps API responses out of shared caches
    """
    response = await handler(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Strict-Transport-Security"] = (
        "max-age=31536000; includeSubDomains"
    )
    if request.path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store"

    return response


@web.middleware
async def error_middleware(request: Request, handler):
    """Turn exceptions escaping a handler into ``{success: false}`` responses."""
    try:
        return await handler(request)
    except web.HTTPException as e:
        if e.status < 400:
            raise
        return error_response(e.reason, e.status)
    except BookingSystemError as e:
        if e.kind == ErrorKind.STORAGE:
            logger.error(f"Storage error on {request.method} {request.path}: {e}", exc_info=True)
            return error_response(GENERIC_ERROR_MESSAGE, 500)
        logger.warning(f"Rejected {request.method} {request.path}: {e}")
        return error_response(str(e), STATUS_BY_KIND.get(e.kind, 400))
    except Exception as e:
        logger.error(
            f"Unexpected error on {request.method} {request.path}: {e}", exc_info=True
        )
        return server_error_response()


async def health_check(request: Request) -> Response:
    """Health check endpoint."""
    settings = request.app[SETTINGS_KEY]
    return json_response(
        {
            "status": "ok",
            "service": "event-booking-api",
            "timestamp": time.time(),
            "uptime_hours": round((time.time() - _START_TIME) / 3600, 2),
            "configuration": {
                "environment": settings.environment,
                "storage_backend": settings.storage_backend,
                "rate_limit_mode": settings.rate_limit_mode,
            },
        }
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[BookingStore] = None,
    notifier: Optional[Notifier] = None,
    rate_limiter: Optional[RateLimiter] = None,
    clock: Callable[[], datetime] = utc_now,
) -> web.Application:
    """
    Create aiohttp application with middleware and routes.

    Args:
        settings: Application settings (defaults to the environment)
        store: Booking store (defaults to the configured backend)
        notifier: Booking notifier (defaults to a logging notifier)
        rate_limiter: Rate limiter (defaults to the configured mode)
        clock: Source of the current time

    Returns:
        Configured web application
    """
    if settings is None:
        from config import settings as env_settings

        settings = env_settings
    if store is None:
        store = get_store(settings)
    if notifier is None:
        notifier = LoggingNotifier(settings.admin_email)
    if rate_limiter is None:
        rate_limiter = RateLimiter(mode=settings.rate_limit_mode)

    app = web.Application(
        middlewares=[security_headers_middleware, error_middleware],
        client_max_size=1024 * 1024,
    )

    app[SETTINGS_KEY] = settings
    app[STORE_KEY] = store
    app[RATE_LIMITER_KEY] = rate_limiter
    app[LIFECYCLE_KEY] = BookingLifecycleManager(
        store, settings, clock=clock, notifier=notifier
    )
    app[CALENDAR_KEY] = CalendarService(store)
    app[CONTACTS_KEY] = ContactService(store, clock=clock)
    app[REPORTING_KEY] = ReportingService(store, settings, clock=clock)

    app.router.add_get("/health", health_check)
    booking_routes.setup_routes(app)
    calendar_routes.setup_routes(app)
    contact_routes.setup_routes(app)
    admin_routes.setup_routes(app)

    return app
