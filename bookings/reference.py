"""Human-facing booking references such as ``DSE-123456-AB1``."""

import re
import secrets
import string
from datetime import datetime
from typing import Optional

from utils.datetime_utils import utc_now

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 3
REFERENCE_PATTERN = re.compile(r"^[A-Z]+-\d{6}-[A-Z0-9]{3}$")


def generate_booking_reference(prefix: str = "DSE", now: Optional[datetime] = None) -> str:
    """
    Generate a booking reference.

    The middle part is the last six digits of the millisecond timestamp, so
    references created in the same instant can collide; the storage layer
    enforces uniqueness and callers retry on collision.

    Args:
        prefix: Upper-case prefix
        now: Time to derive the numeric part from (defaults to current UTC time)

    Returns:
        Reference string, e.g. ``DSE-482913-Q7K``
    """
    moment = now or utc_now()
    millis = int(moment.timestamp() * 1000)
    timestamp_part = str(millis)[-6:].zfill(6)
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{prefix}-{timestamp_part}-{suffix}"


def is_valid_reference(reference: str) -> bool:
    return bool(reference) and bool(REFERENCE_PATTERN.match(reference))
