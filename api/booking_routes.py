"""Booking routes."""

from aiohttp import web
from aiohttp.web import Request, Response

from api.context import LIFECYCLE_KEY, REPORTING_KEY, rate_limited, require_admin
from api.responses import error_response, query_int, read_json, result_response
from bookings.reference import is_valid_reference
from utils.constants import DEFAULT_LIST_LIMIT


def _booking_api(booking):
    return booking.to_api()


def _bookings_api(bookings):
    return [b.to_api() for b in bookings]


@rate_limited("booking", "Too many booking requests. Please try again later.")
async def create_booking(request: Request) -> Response:
    """POST /api/bookings - public booking form submission."""
    payload = await read_json(request)
    result = await request.app[LIFECYCLE_KEY].create(payload)
    return result_response(result, "booking", status=201, transform=_booking_api)


@require_admin
async def list_bookings(request: Request) -> Response:
    """
    GET /api/bookings - admin booking list.

    With both ``startDate`` and ``endDate`` the bookings whose event falls in
    that range are returned in event order; otherwise the newest bookings,
    optionally filtered by ``status``, ``dateFrom`` and ``dateTo``.
    """
    reporting = request.app[REPORTING_KEY]
    query = request.query

    if query.get("startDate") or query.get("endDate"):
        if not (query.get("startDate") and query.get("endDate")):
            return error_response("startDate and endDate parameters are required", 400)
        result = await reporting.get_bookings_by_date_range(
            query["startDate"], query["endDate"]
        )
    else:
        result = await reporting.list_bookings(
            status=query.get("status") or None,
            date_from=query.get("dateFrom") or None,
            date_to=query.get("dateTo") or None,
            limit=query_int(request, "limit", DEFAULT_LIST_LIMIT),
            offset=query_int(request, "offset", 0),
        )

    count = len(result.data) if result.success else 0
    return result_response(result, "bookings", transform=_bookings_api, extra={"count": count})


async def get_availability(request: Request) -> Response:
    """GET /api/bookings/availability?month=&year= - public calendar."""
    month = request.query.get("month")
    year = request.query.get("year")
    if not month or not year:
        return error_response("Month and year parameters are required", 400)

    result = await request.app[REPORTING_KEY].get_available_dates(month, year)
    if not result.success:
        return result_response(result)

    return result_response(
        result,
        "availableDates",
        extra={
            "month": int(month),
            "year": int(year),
            "totalAvailable": len(result.data),
        },
    )


@require_admin
async def get_booking(request: Request) -> Response:
    """GET /api/bookings/{id} - by internal id or booking reference."""
    booking_id = request.match_info["id"]
    lifecycle = request.app[LIFECYCLE_KEY]
    if is_valid_reference(booking_id):
        result = await lifecycle.get_by_reference(booking_id)
    else:
        result = await lifecycle.get(booking_id)
    return result_response(result, "booking", transform=_booking_api)


@require_admin
async def update_booking(request: Request) -> Response:
    """
    PUT /api/bookings/{id}.

    A body holding only ``status`` goes through the status transition path;
    any other body is a field update.
    """
    booking_id = request.match_info["id"]
    payload = await read_json(request)
    lifecycle = request.app[LIFECYCLE_KEY]

    if isinstance(payload, dict) and set(payload) == {"status"}:
        result = await lifecycle.update_status(booking_id, payload["status"])
    else:
        result = await lifecycle.update_fields(booking_id, payload)
    return result_response(result, "booking", transform=_booking_api)


@require_admin
async def delete_booking(request: Request) -> Response:
    """DELETE /api/bookings/{id} - only pending, completed or cancelled bookings."""
    result = await request.app[LIFECYCLE_KEY].delete(request.match_info["id"])
    return result_response(result, extra={"message": "Booking deleted successfully"})


def setup_routes(app: web.Application) -> None:
    # Static paths first so they are not captured by {id}
    app.router.add_get("/api/bookings/availability", get_availability)
    app.router.add_post("/api/bookings", create_booking)
    app.router.add_get("/api/bookings", list_bookings)
    app.router.add_get("/api/bookings/{id}", get_booking)
    app.router.add_put("/api/bookings/{id}", update_booking)
    app.router.add_delete("/api/bookings/{id}", delete_booking)
