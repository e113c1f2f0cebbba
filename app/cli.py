"""CLI: log-uploads lists the objects stored in a bucket."""

import argparse
import asyncio
import sys
from pathlib import Path

import orjson

from app.core.logger import LogIcon, logger
from app.core.settings import settings as st
from app.intake.errors import StorageUnavailable
from app.storage.base import Storage, StoredObject
from app.storage.disk import DiskStorage
from app.storage.factory import create_storage


async def list_uploads(storage: Storage, bucket: str) -> list[StoredObject]:
    try:
        return await storage.list_objects(bucket)
    finally:
        await storage.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="log-uploads", description="Print stored uploads as JSON lines")
    parser.add_argument("--bucket", default=st.STORAGE_BUCKET, help="Bucket to list")
    parser.add_argument("--path", type=Path, default=None, help="Disk storage root (overrides STORAGE_PATH)")
    args = parser.parse_args(argv)

    storage = DiskStorage(args.path) if args.path else create_storage(st)
    if storage is None:
        logger.warning("Persistence disabled, set STORAGE_BACKEND or --path", icon=LogIcon.WARNING)
        return 1

    try:
        objects = asyncio.run(list_uploads(storage, args.bucket))
    except (StorageUnavailable, ValueError) as ex:
        logger.error("Listing uploads failed", icon=LogIcon.DATABASE, reason=str(ex))
        return 1

    for stored in objects:
        sys.stdout.write(orjson.dumps(stored.model_dump(mode="json")).decode() + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
