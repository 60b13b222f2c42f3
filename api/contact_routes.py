"""Contact form routes."""

from aiohttp import web
from aiohttp.web import Request, Response

from api.context import CONTACTS_KEY, rate_limited, require_admin
from api.responses import error_response, query_int, read_json, result_response
from utils.constants import DEFAULT_LIST_LIMIT

_BOOLEAN_QUERY = {"true": True, "false": False}


@rate_limited("contact", "Too many contact submissions. Please try again later.")
async def submit_contact(request: Request) -> Response:
    """POST /api/contact - public contact form."""
    payload = await read_json(request)
    result = await request.app[CONTACTS_KEY].submit(payload)
    return result_response(
        result,
        "submission",
        status=201,
        transform=lambda contact: {"id": contact.id, "createdAt": contact.created_at},
        extra={"message": "Thank you for your message. We will get back to you soon."},
    )


@require_admin
async def list_contacts(request: Request) -> Response:
    """GET /api/contact?isRead=&limit=&offset= - admin inbox."""
    raw_is_read = request.query.get("isRead")
    if raw_is_read is not None and raw_is_read.lower() not in _BOOLEAN_QUERY:
        return error_response("validation error: isRead must be true or false", 400)
    is_read = _BOOLEAN_QUERY[raw_is_read.lower()] if raw_is_read is not None else None

    result = await request.app[CONTACTS_KEY].list_submissions(
        is_read=is_read,
        limit=query_int(request, "limit", DEFAULT_LIST_LIMIT),
        offset=query_int(request, "offset", 0),
    )
    return result_response(
        result, "submissions", transform=lambda items: [c.to_api() for c in items]
    )


@require_admin
async def update_contact(request: Request) -> Response:
    """PUT /api/contact/{id} - mark a submission read or unread."""
    payload = await read_json(request)
    if not isinstance(payload, dict) or "isRead" not in payload:
        return error_response("validation error: isRead is required", 400)

    result = await request.app[CONTACTS_KEY].mark_read(
        request.match_info["id"], payload["isRead"]
    )
    return result_response(result, "submission", transform=lambda c: c.to_api())


def setup_routes(app: web.Application) -> None:
    app.router.add_post("/api/contact", submit_contact)
    app.router.add_get("/api/contact", list_contacts)
    app.router.add_put("/api/contact/{id}", update_contact)
