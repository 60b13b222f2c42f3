"""
Admin session verification for the HTTP API.
"""

from dataclasses import dataclass
from typing import Optional

from aiohttp.web import Request

from config import Settings


@dataclass
class AuthUser:
    """Authenticated administrator."""

    id: str
    role: str = "admin"


@dataclass
class AuthResult:
    """Result of verifying a request."""

    success: bool
    user: Optional[AuthUser] = None
    error: Optional[str] = None


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def verify_auth(request: Request, settings: Settings) -> AuthResult:
    """Check the request's bearer token against the configured admin tokens."""
    token = _bearer_token(request)
    if token is None:
        return AuthResult(success=False, error="No authentication token provided")

    if not settings.is_admin_token(token):
        return AuthResult(success=False, error="Invalid or expired token")

    # Only a token fingerprint is kept on the user object
    return AuthResult(success=True, user=AuthUser(id=f"token:{token[-4:]}"))
