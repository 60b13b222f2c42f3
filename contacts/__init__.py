"""Contact form handling."""

from .service import ContactService

__all__ = ["ContactService"]
