"""Application keys and request helpers shared by the route modules."""

import functools
import logging
from typing import Awaitable, Callable

from aiohttp import web
from aiohttp.web import Request, Response

from api.responses import error_response, rate_limit_headers
from bookings.calendar import CalendarService
from bookings.lifecycle import BookingLifecycleManager
from config import Settings
from contacts.service import ContactService
from db.base import BookingStore
from reporting.service import ReportingService
from utils.auth import verify_auth
from utils.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

SETTINGS_KEY = web.AppKey("settings", Settings)
STORE_KEY = web.AppKey("store", BookingStore)
LIFECYCLE_KEY = web.AppKey("lifecycle", BookingLifecycleManager)
CALENDAR_KEY = web.AppKey("calendar", CalendarService)
CONTACTS_KEY = web.AppKey("contacts", ContactService)
REPORTING_KEY = web.AppKey("reporting", ReportingService)
RATE_LIMITER_KEY = web.AppKey("rate_limiter", RateLimiter)

Handler = Callable[[Request], Awaitable[Response]]


def require_admin(handler: Handler) -> Handler:
    """Reject requests without a valid admin bearer token."""

    @functools.wraps(handler)
    async def wrapper(request: Request) -> Response:
        auth = verify_auth(request, request.app[SETTINGS_KEY])
        if not auth.success or auth.user is None:
            logger.warning(f"Unauthorized request to {request.path}: {auth.error}")
            return error_response("Authentication required", 401)
        request["user"] = auth.user
        return await handler(request)

    return wrapper


def client_identifier(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or request.remote or "unknown"


def rate_limited(action: str, message: str) -> Callable[[Handler], Handler]:
    """
    Apply the configured rate limit for an action.

    Blocked requests get 429 with Retry-After; allowed responses carry the
    remaining quota headers.
    """

    def decorator(handler: Handler) -> Handler:
        @functools.wraps(handler)
        async def wrapper(request: Request) -> Response:
            settings = request.app[SETTINGS_KEY]
            limit = request.app[RATE_LIMITER_KEY].check(
                client_identifier(request),
                action,
                getattr(settings, f"{action}_rate_limit_attempts"),
                getattr(settings, f"{action}_rate_limit_window_seconds"),
            )
            if not limit.allowed:
                logger.warning(f"Rate limit hit for {action} from {client_identifier(request)}")
                return error_response(message, 429, headers=rate_limit_headers(limit))

            response = await handler(request)
            response.headers.update(rate_limit_headers(limit))
            return response

        return wrapper

    return decorator
