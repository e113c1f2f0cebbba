"""Tests for the storage and pipeline lifespan events."""

from pathlib import Path

import pytest

from app.core.settings import settings as st
from app.events.pipeline import PipelineEvent
from app.events.storage import StorageEvent
from app.intake.pipeline import IntakePipeline
from app.storage.disk import DiskStorage
from app.storage.memory import MemoryStorage


class TestStorageEvent:
    """Tests for StorageEvent."""

    async def test_disabled_backend_yields_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(st, "STORAGE_BACKEND", "none")
        event = StorageEvent()

        assert await event.startup() is None
        await event.shutdown(None)

    async def test_memory_backend_is_closed_on_shutdown(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(st, "STORAGE_BACKEND", "memory")
        event = StorageEvent()

        storage = await event.startup()
        assert isinstance(storage, MemoryStorage)
        await storage.save("a.txt", b"a", "uploads")

        await event.shutdown(storage)
        assert await storage.list_objects("uploads") == []

    async def test_disk_backend_uses_configured_path(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(st, "STORAGE_BACKEND", "disk")
        monkeypatch.setattr(st, "STORAGE_PATH", tmp_path)

        storage = await StorageEvent().startup()

        assert isinstance(storage, DiskStorage)
        assert storage.root == tmp_path


class TestPipelineEvent:
    """Tests for PipelineEvent."""

    async def test_builds_pipeline_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(st, "MAX_FILE_SIZE", 2048)
        monkeypatch.setattr(st, "ALLOWED_MIME_TYPES", ["text/plain"])

        pipeline = await PipelineEvent().startup()

        assert isinstance(pipeline, IntakePipeline)
        assert pipeline.receiver.max_file_size == 2048
        assert pipeline.receiver.field == st.UPLOAD_FIELD
        assert "text/plain" in pipeline.gate
        assert "image/png" not in pipeline.gate

    def test_pipeline_event_has_no_shutdown(self) -> None:
        assert not PipelineEvent.has_shutdown()
