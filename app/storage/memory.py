"""In-process storage backend, mainly for development and tests."""

import threading
import uuid
from datetime import UTC, datetime

from app.storage.base import Storage, StoredObject


class MemoryStorage(Storage):
    name = "memory"

    def __init__(self) -> None:
        self._objects: dict[str, dict[str, tuple[StoredObject, bytes]]] = {}
        self._lock = threading.Lock()

    async def save(self, name: str, content: bytes, bucket: str) -> str:
        object_id = uuid.uuid4().hex
        meta = StoredObject(id=object_id, name=name, bucket=bucket, size=len(content), stored_at=datetime.now(UTC))
        with self._lock:
            self._objects.setdefault(bucket, {})[object_id] = (meta, content)
        return object_id

    async def list_objects(self, bucket: str) -> list[StoredObject]:
        with self._lock:
            return [meta for meta, _ in self._objects.get(bucket, {}).values()]

    async def read(self, bucket: str, object_id: str) -> bytes:
        with self._lock:
            return self._objects[bucket][object_id][1]

    async def close(self) -> None:
        with self._lock:
            self._objects.clear()
