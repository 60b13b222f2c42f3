"""Admin calendar routes."""

from aiohttp import web
from aiohttp.web import Request, Response

from api.context import CALENDAR_KEY, require_admin
from api.responses import error_response, read_json, result_response
from utils.constants import MAINTENANCE_REASON


@require_admin
async def get_calendar(request: Request) -> Response:
    """GET /api/calendar?startDate=&endDate= - calendar rows with booking summaries."""
    start = request.query.get("startDate")
    end = request.query.get("endDate")
    if not start or not end:
        return error_response("startDate and endDate parameters are required", 400)

    result = await request.app[CALENDAR_KEY].get_calendar(start, end)
    if not result.success:
        return result_response(result)

    rows = result.data
    return result_response(
        result,
        "calendar",
        extra={
            "startDate": start,
            "endDate": end,
            "totalDays": len(rows),
            "availableDays": sum(1 for row in rows if row["isAvailable"]),
            "bookedDays": sum(1 for row in rows if not row["isAvailable"]),
        },
    )


@require_admin
async def update_availability(request: Request) -> Response:
    """
    PUT /api/calendar/availability.

    Body is either ``{date, available, blockedReason}`` or
    ``{updates: [...]}``; dates held by bookings are refused.
    """
    payload = await read_json(request)
    result = await request.app[CALENDAR_KEY].apply_updates(payload)
    return result_response(
        result,
        "updated",
        transform=lambda days: [day.model_dump(mode="json", by_alias=True) for day in days],
    )


@require_admin
async def block_range(request: Request) -> Response:
    """POST /api/calendar/block-range - block every free day in a range."""
    payload = await read_json(request)
    if not isinstance(payload, dict):
        return error_response("validation error: request body must be a JSON object", 400)

    calendar = request.app[CALENDAR_KEY]
    reason = MAINTENANCE_REASON if payload.get("maintenance") else payload.get("blockedReason")
    result = await calendar.block_range(payload.get("startDate"), payload.get("endDate"), reason)
    return result_response(result, "blocked")


def setup_routes(app: web.Application) -> None:
    app.router.add_get("/api/calendar", get_calendar)
    app.router.add_put("/api/calendar/availability", update_availability)
    app.router.add_post("/api/calendar/block-range", block_range)
