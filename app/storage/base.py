"""Storage collaborator interface for accepted uploads."""

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel


class StoredObject(BaseModel):
    """Metadata of a persisted upload."""

    id: str
    name: str
    bucket: str
    size: int
    stored_at: datetime


class Storage(ABC):
    """Persists accepted uploads. Implementations raise StorageUnavailable on failure."""

    name: str

    @abstractmethod
    async def save(self, name: str, content: bytes, bucket: str) -> str:
        """Store content under bucket and return an opaque object id."""
        ...

    @abstractmethod
    async def list_objects(self, bucket: str) -> list[StoredObject]:
        """Return metadata for every object in bucket, oldest first."""
        ...

    async def close(self) -> None:  # noqa: B027
        """Release backend resources. Override if needed."""
