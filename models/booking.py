"""Booking models for event reservations."""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from utils.constants import (
    MAX_EMAIL_LENGTH,
    MAX_EVENT_TYPE_LENGTH,
    MAX_GUEST_COUNT,
    MAX_NAME_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_SERVICE_ID_LENGTH,
    MAX_SPECIAL_REQUESTS_LENGTH,
    MAX_VENUE_ADDRESS_LENGTH,
    MAX_VENUE_NAME_LENGTH,
)
from utils.datetime_utils import parse_date, parse_iso_datetime
from utils.validation import FIELD_LABELS, sanitize_text

CENTS = Decimal("0.01")


class BookingStatus(str, Enum):
    """Booking status."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_active(self) -> bool:
        return self in (BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS)


class PaymentStatus(str, Enum):
    """Payment status, tracked independently of the booking lifecycle."""

    UNPAID = "UNPAID"
    DEPOSIT_PAID = "DEPOSIT_PAID"
    PAID = "PAID"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


class Booking(BaseModel):
    """Stored booking record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    booking_reference: str
    client_name: str
    client_email: str
    client_phone: str
    event_date: date
    event_start_time: Optional[time] = None
    event_end_time: Optional[time] = None
    event_type: str
    services: List[str]
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    guest_count: Optional[int] = None
    special_requests: Optional[str] = None
    total_amount: Optional[Decimal] = None
    deposit_amount: Optional[Decimal] = None
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    created_at: datetime
    updated_at: datetime

    @field_validator("total_amount", "deposit_amount")
    @classmethod
    def _quantize(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        return value.quantize(CENTS) if value is not None else None

    def to_api(self) -> dict:
        """camelCase JSON representation used by the HTTP API."""
        return self.model_dump(mode="json", by_alias=True)

    def to_row(self) -> dict:
        """snake_case JSON representation used by the storage layer."""
        return self.model_dump(mode="json")


# ========== Request schemas ==========


def _parse_time(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.time()
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            if "T" in text:
                return parse_iso_datetime(text).time()
            return time.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid time: {value!r}") from None
    return value


class _BookingFields(BaseModel):
    """Field rules shared by the create and update schemas."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    @field_validator(
        "client_name", "client_phone", "event_type", mode="before", check_fields=False
    )
    @classmethod
    def _required_text(cls, value: Any, info: ValidationInfo) -> Any:
        if not isinstance(value, str):
            return value
        cleaned = sanitize_text(value)
        if not cleaned:
            raise ValueError(f"{FIELD_LABELS[info.field_name]} is required")
        return cleaned

    @field_validator(
        "venue_name", "venue_address", "special_requests", mode="before", check_fields=False
    )
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        return sanitize_text(value) or None

    @field_validator("client_email", mode="before", check_fields=False)
    @classmethod
    def _email(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        cleaned = sanitize_text(value)
        if not cleaned:
            raise ValueError("Client email is required")
        try:
            return validate_email(cleaned, check_deliverability=False).normalized
        except EmailNotValidError:
            raise ValueError("Invalid email format") from None

    @field_validator("event_date", mode="before", check_fields=False)
    @classmethod
    def _event_date(cls, value: Any) -> Any:
        if value is None:
            return value
        try:
            return parse_date(value)
        except ValueError:
            raise ValueError("Invalid event date") from None

    @field_validator(
        "event_start_time", "event_end_time", mode="before", check_fields=False
    )
    @classmethod
    def _event_time(cls, value: Any) -> Any:
        return _parse_time(value)

    @field_validator("services", mode="before", check_fields=False)
    @classmethod
    def _services(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        services: List[str] = []
        for item in value:
            if not isinstance(item, str) or not sanitize_text(item):
                raise ValueError("Service identifiers must be non-empty strings")
            cleaned = sanitize_text(item)
            if len(cleaned) > MAX_SERVICE_ID_LENGTH:
                raise ValueError(f"Service identifier too long: {cleaned[:20]}...")
            if cleaned not in services:
                services.append(cleaned)
        if not services:
            raise ValueError("At least one service is required")
        return services

    @field_validator(
        "guest_count", "total_amount", "deposit_amount", mode="before", check_fields=False
    )
    @classmethod
    def _no_booleans(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, bool):
            raise ValueError(f"{info.field_name.replace('_', ' ').capitalize()} must be a number")
        return value

    @field_validator("total_amount", "deposit_amount", check_fields=False)
    @classmethod
    def _quantize(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        return value.quantize(CENTS) if value is not None else None

    @model_validator(mode="after")
    def _time_order(self):
        start = getattr(self, "event_start_time", None)
        end = getattr(self, "event_end_time", None)
        if start is not None and end is not None and end <= start:
            raise ValueError("Event end time must be after start time")
        return self


class BookingRequest(_BookingFields):
    """
    Validated booking creation request.

    Unknown keys, including any client-supplied ``status``, are dropped.
    Pass ``context={"today": date}`` to reject event dates on or before that day.
    """

    client_name: str = Field(..., max_length=MAX_NAME_LENGTH)
    client_email: str = Field(..., max_length=MAX_EMAIL_LENGTH)
    client_phone: str = Field(..., max_length=MAX_PHONE_LENGTH)
    event_date: date
    event_start_time: Optional[time] = None
    event_end_time: Optional[time] = None
    event_type: str = Field(..., max_length=MAX_EVENT_TYPE_LENGTH)
    services: List[str]
    venue_name: Optional[str] = Field(None, max_length=MAX_VENUE_NAME_LENGTH)
    venue_address: Optional[str] = Field(None, max_length=MAX_VENUE_ADDRESS_LENGTH)
    guest_count: Optional[int] = Field(None, gt=0, le=MAX_GUEST_COUNT)
    special_requests: Optional[str] = Field(None, max_length=MAX_SPECIAL_REQUESTS_LENGTH)
    total_amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    deposit_amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)

    @field_validator("event_date")
    @classmethod
    def _not_in_past(cls, value: date, info: ValidationInfo) -> date:
        today = (info.context or {}).get("today")
        if today is not None and value <= today:
            raise ValueError("Event date must be in the future")
        return value

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "clientName": "John Doe",
                "clientEmail": "john@example.com",
                "clientPhone": "555-123-4567",
                "eventDate": "2025-12-25",
                "eventType": "Wedding",
                "services": ["dj", "photography"],
            }
        }
    )


class BookingUpdate(_BookingFields):
    """Partial booking update; only the keys present are applied."""

    client_name: Optional[str] = Field(None, max_length=MAX_NAME_LENGTH)
    client_email: Optional[str] = Field(None, max_length=MAX_EMAIL_LENGTH)
    client_phone: Optional[str] = Field(None, max_length=MAX_PHONE_LENGTH)
    event_date: Optional[date] = None
    event_start_time: Optional[time] = None
    event_end_time: Optional[time] = None
    event_type: Optional[str] = Field(None, max_length=MAX_EVENT_TYPE_LENGTH)
    services: Optional[List[str]] = None
    venue_name: Optional[str] = Field(None, max_length=MAX_VENUE_NAME_LENGTH)
    venue_address: Optional[str] = Field(None, max_length=MAX_VENUE_ADDRESS_LENGTH)
    guest_count: Optional[int] = Field(None, gt=0, le=MAX_GUEST_COUNT)
    special_requests: Optional[str] = Field(None, max_length=MAX_SPECIAL_REQUESTS_LENGTH)
    total_amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    deposit_amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None

    @model_validator(mode="after")
    def _no_null_required(self):
        required = (
            "client_name", "client_email", "client_phone", "event_date",
            "event_type", "services", "status", "payment_status",
        )
        nulled = [
            FIELD_LABELS.get(name, name)
            for name in required
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulled:
            raise ValueError(f"Cannot clear required fields: {', '.join(nulled)}")
        return self

    def changes(self) -> dict:
        """Fields explicitly present in the request."""
        return self.model_dump(exclude_unset=True)

    @property
    def is_status_only(self) -> bool:
        return self.model_fields_set == {"status"}
