"""Booking storage backends."""

from config import Settings

from .base import BookingStore, Change, ChangeOp, UnitOfWork
from .memory_store import InMemoryStore
from .supabase_client import SupabaseStore


def get_store(settings: Settings) -> BookingStore:
    """Build the store selected by ``settings.storage_backend``."""
    if settings.storage_backend == "supabase":
        return SupabaseStore(settings.supabase_url, settings.supabase_key)
    if settings.storage_backend == "memory":
        return InMemoryStore()
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


__all__ = [
    "BookingStore",
    "Change",
    "ChangeOp",
    "InMemoryStore",
    "SupabaseStore",
    "UnitOfWork",
    "get_store",
]
