"""Tests for the log-uploads command."""

import asyncio
from pathlib import Path

import orjson
import pytest

from app.cli import main
from app.core.settings import settings as st
from app.storage.disk import DiskStorage


def stored_lines(output: str) -> list[dict]:
    # log records share stdout with the listing
    records = (orjson.loads(line) for line in output.splitlines() if line.startswith("{"))
    return [record for record in records if "stored_at" in record]


def test_lists_disk_bucket(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    storage = DiskStorage(tmp_path)
    first = asyncio.run(storage.save("report.pdf", b"%PDF-1.7", "uploads"))
    second = asyncio.run(storage.save("notes.txt", b"hi", "uploads"))

    assert main(["--path", str(tmp_path)]) == 0

    lines = stored_lines(capsys.readouterr().out)
    assert {line["id"] for line in lines} == {first, second}
    assert {line["name"]: line["size"] for line in lines} == {"report.pdf": 8, "notes.txt": 2}


def test_other_bucket_is_empty(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    asyncio.run(DiskStorage(tmp_path).save("a.txt", b"a", "uploads"))

    assert main(["--path", str(tmp_path), "--bucket", "archive"]) == 0
    assert stored_lines(capsys.readouterr().out) == []


def test_invalid_bucket_fails(tmp_path: Path) -> None:
    assert main(["--path", str(tmp_path), "--bucket", "../etc"]) == 1


def test_disabled_persistence_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(st, "STORAGE_BACKEND", "none")
    assert main([]) == 1
