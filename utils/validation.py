"""
Input validation helpers shared by the request schemas and the API layer.
"""

import re
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_snake

# Human-readable labels used when a required field is missing entirely
FIELD_LABELS = {
    "client_name": "Client name",
    "client_email": "Client email",
    "client_phone": "Phone number",
    "event_date": "Event date",
    "event_type": "Event type",
    "services": "Services",
    "name": "Name",
    "email": "Email",
    "message": "Message",
    "date": "Date",
    "available": "Available flag",
}


def validate_uuid(uuid_string: str) -> bool:
    """
    Validate UUID format.

    Args:
        uuid_string: UUID string

    Returns:
        True if valid UUID format, False otherwise
    """
    if not uuid_string or not isinstance(uuid_string, str):
        return False

    pattern = r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$'
    return bool(re.match(pattern, uuid_string.lower()))


def sanitize_text(text: Optional[str]) -> str:
    """
    Sanitize user input text.

    Control characters other than newlines and tabs are removed and
    surrounding whitespace is trimmed. Length limits are left to the
    schemas so over-long input is rejected rather than truncated.
    """
    if not text:
        return ""

    sanitized = re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]', '', str(text))
    return sanitized.strip()


def _field_name(loc: tuple) -> str:
    for part in loc:
        if isinstance(part, str):
            return to_snake(part)
    return ""


def collect_error_messages(exc: PydanticValidationError) -> List[str]:
    """
    Turn a pydantic error into one readable message per violation.

    Messages raised by our own validators are used verbatim; everything else
    is prefixed with the field label.
    """
    messages: List[str] = []
    for error in exc.errors():
        field = _field_name(error.get("loc", ()))
        label = FIELD_LABELS.get(field, field or "payload")

        if error["type"] == "missing":
            message = f"{label} is required"
        elif error["type"] == "value_error":
            message = str(error.get("ctx", {}).get("error", error["msg"]))
        else:
            message = f"{label}: {error['msg']}"

        if message not in messages:
            messages.append(message)
    return messages


def format_validation_error(exc: PydanticValidationError) -> str:
    """Aggregate every violation into a single validation error message."""
    return f"validation error: {', '.join(collect_error_messages(exc))}"
