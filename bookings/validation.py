"""
Validation layer: turns raw payloads into typed requests.

Each function is a pure function of its input. On failure it raises
``ValidationError`` carrying one aggregated message for all violations.
"""

from datetime import date
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from models.booking import BookingRequest, BookingUpdate
from models.calendar import AvailabilityUpdate, BulkAvailabilityUpdate
from models.contact import ContactRequest
from utils.exceptions import ValidationError
from utils.validation import format_validation_error


def _ensure_object(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("validation error: request body must be a JSON object")
    return payload


def validate_booking_request(payload: Any, today: Optional[date] = None) -> BookingRequest:
    """
    Validate a booking creation payload.

    Args:
        payload: Raw JSON object (camelCase or snake_case keys)
        today: When given, event dates on or before this day are rejected

    Returns:
        Normalized BookingRequest
    """
    try:
        return BookingRequest.model_validate(
            _ensure_object(payload), context={"today": today}
        )
    except PydanticValidationError as e:
        raise ValidationError(format_validation_error(e)) from None


def validate_booking_update(payload: Any) -> BookingUpdate:
    try:
        update = BookingUpdate.model_validate(_ensure_object(payload))
    except PydanticValidationError as e:
        raise ValidationError(format_validation_error(e)) from None
    if not update.model_fields_set:
        raise ValidationError("validation error: no updatable fields provided")
    return update


def validate_contact_request(payload: Any) -> ContactRequest:
    try:
        return ContactRequest.model_validate(_ensure_object(payload))
    except PydanticValidationError as e:
        raise ValidationError(format_validation_error(e)) from None


def validate_availability_update(payload: Any) -> BulkAvailabilityUpdate:
    """
    Validate an admin availability change.

    Accepts either a single ``{date, available, blockedReason}`` object or
    ``{updates: [...]}`` and always returns the bulk form.
    """
    payload = _ensure_object(payload)
    try:
        if "updates" in payload:
            return BulkAvailabilityUpdate.model_validate(payload)
        return BulkAvailabilityUpdate(updates=[AvailabilityUpdate.model_validate(payload)])
    except PydanticValidationError as e:
        raise ValidationError(format_validation_error(e)) from None
