"""
JSON response helpers shared by the route handlers.

Every failure body is ``{"success": false, "error": "..."}``.
"""

import json
from typing import Any, Callable, Dict, Optional

from aiohttp import web
from aiohttp.web import Request, Response
from pydantic_core import to_jsonable_python

from bookings.results import GENERIC_ERROR_MESSAGE, OperationResult
from utils.exceptions import ErrorKind, ValidationError
from utils.rate_limit import RateLimitResult

MAX_REQUEST_BODY_SIZE = 1024 * 1024  # 1MB

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.POLICY: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.STORAGE: 500,
}


def _dumps(data: Any) -> str:
    # Decimal amounts serialize as strings, dates as ISO 8601
    return json.dumps(to_jsonable_python(data))


def json_response(
    data: Dict[str, Any], status: int = 200, headers: Optional[Dict[str, str]] = None
) -> Response:
    return web.json_response(data, status=status, headers=headers, dumps=_dumps)


def error_response(
    message: str, status: int, headers: Optional[Dict[str, str]] = None
) -> Response:
    return json_response({"success": False, "error": message}, status=status, headers=headers)


def server_error_response() -> Response:
    return error_response(GENERIC_ERROR_MESSAGE, 500)


def result_response(
    result: OperationResult,
    key: Optional[str] = None,
    status: int = 200,
    transform: Optional[Callable[[Any], Any]] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Response:
    """
    Convert an ``OperationResult`` into a JSON response.

    Args:
        result: Service result
        key: Body key holding the result data on success
        status: Status code on success
        transform: Applied to the data before serialization
        extra: Additional top-level fields on success
    """
    if not result.success:
        return error_response(result.error, STATUS_BY_KIND.get(result.error_kind, 500))

    body: Dict[str, Any] = {"success": True}
    if key is not None:
        body[key] = transform(result.data) if transform else result.data
    if extra:
        body.update(extra)
    return json_response(body, status=status)


def rate_limit_headers(limit: RateLimitResult) -> Dict[str, str]:
    headers = {
        "X-RateLimit-Remaining": str(limit.remaining),
        "X-RateLimit-Reset": str(int(limit.reset_time)),
    }
    if limit.retry_after is not None:
        headers["Retry-After"] = str(limit.retry_after)
    return headers


async def read_json(request: Request) -> Any:
    """
    Read and parse a JSON request body.

    Raises:
        ValidationError: If the body is missing, too large or not JSON
    """
    if request.content_length and request.content_length > MAX_REQUEST_BODY_SIZE:
        raise ValidationError("validation error: request body too large")

    raw_body = await request.read()
    if len(raw_body) > MAX_REQUEST_BODY_SIZE:
        raise ValidationError("validation error: request body too large")
    if not raw_body:
        raise ValidationError("validation error: request body is empty")

    try:
        return json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ValidationError("validation error: request body must be valid JSON") from None


def query_int(request: Request, name: str, default: int) -> int:
    value = request.query.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"validation error: {name} must be an integer") from None
