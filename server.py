"""
Booking API server entry point.

Run with ``python server.py``. For production, run behind a reverse proxy
with process management (systemd, supervisor, etc.) and
``STORAGE_BACKEND=supabase``.
"""

import logging
import sys

from aiohttp import web

from api.app import create_app
from config import settings
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging(log_level=settings.log_level, log_file="server.log", log_dir=settings.log_dir)

    try:
        settings.validate_all_required()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    if settings.storage_backend == "memory":
        logger.warning("Using in-memory storage - data is lost on restart")
    if not settings.admin_tokens:
        logger.warning("No ADMIN_API_TOKENS configured - admin routes will reject every request")

    logger.info(f"Starting booking API on {settings.host}:{settings.port}")
    web.run_app(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
