"""Calendar availability models (one row per calendar day)."""

from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from utils.datetime_utils import parse_date
from utils.validation import sanitize_text


class CalendarDay(BaseModel):
    """Availability of a single calendar day."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: date
    is_available: bool = True
    blocked_reason: Optional[str] = None
    booking_id: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def is_held_by_booking(self) -> bool:
        return self.booking_id is not None

    @property
    def is_admin_block(self) -> bool:
        return not self.is_available and self.booking_id is None

    def to_row(self) -> dict:
        return self.model_dump(mode="json")


class AvailabilityUpdate(BaseModel):
    """Administrative availability change for one date."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: date
    available: bool
    blocked_reason: Optional[str] = Field(None, max_length=255)

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, value: Any) -> Any:
        try:
            return parse_date(value)
        except ValueError:
            raise ValueError(f"Invalid date: {value!r}") from None

    @field_validator("available", mode="before")
    @classmethod
    def _strict_bool(cls, value: Any) -> Any:
        if not isinstance(value, bool):
            raise ValueError("Available flag must be true or false")
        return value

    @field_validator("blocked_reason", mode="before")
    @classmethod
    def _reason(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        return sanitize_text(value) or None


class BulkAvailabilityUpdate(BaseModel):
    """Several availability changes submitted together."""

    updates: List[AvailabilityUpdate] = Field(..., min_length=1)
