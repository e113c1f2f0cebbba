"""Filesystem storage backend: one directory per bucket, content plus a JSON sidecar."""

import asyncio
import re
import uuid
from datetime import UTC, datetime
from pathlib import Path

import orjson

from app.intake.errors import StorageUnavailable
from app.storage.base import Storage, StoredObject

BUCKET_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class DiskStorage(Storage):
    """Objects are stored as ``<root>/<bucket>/<id>.bin`` with ``<id>.json`` metadata.

    Client filenames only ever land in the sidecar, never in a path.
    """

    name = "disk"

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _bucket_dir(self, bucket: str) -> Path:
        if not BUCKET_PATTERN.match(bucket):
            raise ValueError(f"Invalid bucket name: {bucket!r}")
        return self.root / bucket

    def _write(self, meta: StoredObject, content: bytes) -> None:
        directory = self._bucket_dir(meta.bucket)
        directory.mkdir(parents=True, exist_ok=True)
        (directory / f"{meta.id}.bin").write_bytes(content)
        (directory / f"{meta.id}.json").write_bytes(orjson.dumps(meta.model_dump(mode="json")))

    def _scan(self, bucket: str) -> list[StoredObject]:
        directory = self._bucket_dir(bucket)
        if not directory.is_dir():
            return []
        objects = [StoredObject.model_validate(orjson.loads(path.read_bytes())) for path in directory.glob("*.json")]
        return sorted(objects, key=lambda meta: meta.stored_at)

    async def save(self, name: str, content: bytes, bucket: str) -> str:
        meta = StoredObject(
            id=uuid.uuid4().hex,
            name=name,
            bucket=bucket,
            size=len(content),
            stored_at=datetime.now(UTC),
        )
        try:
            await asyncio.to_thread(self._write, meta, content)
        except OSError as ex:
            raise StorageUnavailable(f"Could not write to {self.root}: {ex}") from ex
        return meta.id

    async def list_objects(self, bucket: str) -> list[StoredObject]:
        try:
            return await asyncio.to_thread(self._scan, bucket)
        except OSError as ex:
            raise StorageUnavailable(f"Could not read from {self.root}: {ex}") from ex
