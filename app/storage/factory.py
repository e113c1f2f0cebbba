"""Storage backend selection from settings."""

from app.core.settings import Settings
from app.storage.base import Storage
from app.storage.disk import DiskStorage
from app.storage.memory import MemoryStorage


def create_storage(settings: Settings) -> Storage | None:
    """Return the configured backend, or None when persistence is disabled."""
    match settings.STORAGE_BACKEND:
        case "memory":
            return MemoryStorage()
        case "disk":
            return DiskStorage(settings.STORAGE_PATH)
        case _:
            return None
