"""
Configuration module for the event booking service.
Loads environment variables and provides typed configuration.
"""

import hmac
import re
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)

RATE_LIMIT_MODES = ("off", "log", "enforce")
STORAGE_BACKENDS = ("memory", "supabase")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "development"  # development, staging, production
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Storage
    storage_backend: str = "memory"  # memory, supabase
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    # Booking references look like DSE-123456-AB1
    booking_reference_prefix: str = "DSE"
    reference_max_attempts: int = 5

    # Supported range for the public availability calendar
    calendar_min_year: int = 2024
    calendar_max_year: int = 2030

    # Rate limiting: off, log (evaluate but never block), enforce
    rate_limit_mode: str = "off"
    booking_rate_limit_attempts: int = 5
    booking_rate_limit_window_seconds: int = 10 * 60
    contact_rate_limit_attempts: int = 10
    contact_rate_limit_window_seconds: int = 10 * 60

    # Admin access
    admin_api_tokens: str = ""  # Comma-separated bearer tokens
    admin_email: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("booking_reference_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if not re.fullmatch(r"[A-Z]+", value):
            raise ValueError("booking_reference_prefix must be upper-case letters")
        return value

    @field_validator("rate_limit_mode", "storage_backend")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def admin_tokens(self) -> List[str]:
        return [t.strip() for t in self.admin_api_tokens.split(",") if t.strip()]

    def is_admin_token(self, token: Optional[str]) -> bool:
        """
        Check if a bearer token belongs to an administrator.

        Args:
            token: Token taken from the Authorization header

        Returns:
            True if token is configured as an admin token, False otherwise
        """
        if not token:
            return False
        return any(
            hmac.compare_digest(token.encode(), candidate.encode())
            for candidate in self.admin_tokens
        )

    def validate_all_required(self) -> None:
        """
        Validate that all required settings are present.

        Raises:
            ValueError: If required fields are missing or invalid
        """
        problems = []

        if self.storage_backend not in STORAGE_BACKENDS:
            problems.append(f"storage_backend (got {self.storage_backend!r})")

        if self.rate_limit_mode not in RATE_LIMIT_MODES:
            problems.append(f"rate_limit_mode (got {self.rate_limit_mode!r})")

        if self.storage_backend == "supabase":
            for field in ("supabase_url", "supabase_key"):
                value = getattr(self, field, None)
                if not value or str(value).lower().startswith("your_"):
                    problems.append(field)

        if self.calendar_min_year > self.calendar_max_year:
            problems.append("calendar_min_year/calendar_max_year")

        if self.reference_max_attempts < 1:
            problems.append("reference_max_attempts")

        if problems:
            raise ValueError(
                f"Missing or invalid required configuration: "
                f"{', '.join(problems)}. "
                f"Please check your .env file and ensure all required "
                f"values are set."
            )


# Global settings instance
settings = Settings()
