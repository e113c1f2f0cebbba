"""Storage backend lifespan event."""

from app.core.lifespan import BaseEvent
from app.core.logger import LogIcon, logger
from app.core.settings import settings as st
from app.storage.base import Storage
from app.storage.factory import create_storage


class StorageEvent(BaseEvent[Storage | None]):
    """Creates the configured storage backend; None when persistence is disabled."""

    name = "storage"

    async def startup(self) -> Storage | None:
        storage = create_storage(st)
        if storage is None:
            logger.info("Persistence disabled", icon=LogIcon.DATABASE)
        else:
            logger.info("Storage backend ready", icon=LogIcon.DATABASE, backend=storage.name, bucket=st.STORAGE_BUCKET)
        return storage

    async def shutdown(self, instance: Storage | None) -> None:
        if instance is not None:
            await instance.close()
