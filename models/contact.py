"""Contact form submission models."""

from datetime import datetime
from typing import Any, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from utils.constants import (
    MAX_EMAIL_LENGTH,
    MAX_MESSAGE_LENGTH,
    MAX_NAME_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_SUBJECT_LENGTH,
)
from utils.validation import FIELD_LABELS, sanitize_text


class ContactSubmission(BaseModel):
    """Stored contact form submission."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    email: str
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str
    source: str = "website"
    is_read: bool = False
    created_at: datetime

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def to_row(self) -> dict:
        return self.model_dump(mode="json")


class ContactRequest(BaseModel):
    """Validated contact form payload."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., max_length=MAX_NAME_LENGTH)
    email: str = Field(..., max_length=MAX_EMAIL_LENGTH)
    phone: Optional[str] = Field(None, max_length=MAX_PHONE_LENGTH)
    subject: Optional[str] = Field(None, max_length=MAX_SUBJECT_LENGTH)
    message: str = Field(..., max_length=MAX_MESSAGE_LENGTH)

    @field_validator("name", "message", mode="before")
    @classmethod
    def _required_text(cls, value: Any, info: ValidationInfo) -> Any:
        if not isinstance(value, str):
            return value
        cleaned = sanitize_text(value)
        if not cleaned:
            raise ValueError(f"{FIELD_LABELS[info.field_name]} is required")
        return cleaned

    @field_validator("phone", "subject", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        return sanitize_text(value) or None

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        try:
            return validate_email(sanitize_text(value), check_deliverability=False).normalized
        except EmailNotValidError:
            raise ValueError("Invalid email format") from None
