"""Test fixtures for fileanalyse-api unit tests."""

from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from app.core.lifespan import State
from app.intake.pipeline import IntakePipeline

BOUNDARY = "----fileanalyse-test-boundary"

JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
PNG_HEADER = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request (case-insensitive like Robyn's)."""

    _data: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._data = {key.lower(): value for key, value in self._data.items()}

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key.lower(), default)

    def set(self, key: str, value: str) -> None:
        self._data[key.lower()] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key.lower()] = value


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    body: bytes | str = b""
    headers: MockHeaders = field(default_factory=MockHeaders)
    files: dict = field(default_factory=dict)
    method: str = "POST"
    path: str = "/api/fileanalyse"


# -----------------------------------------------------------------------------
# Multipart helpers
# -----------------------------------------------------------------------------


@dataclass
class Part:
    """One multipart section; ``filename=None`` makes it a plain form field."""

    name: str
    data: bytes
    filename: str | None = None
    content_type: str | None = None


def build_multipart(parts: Sequence[Part], boundary: str = BOUNDARY) -> tuple[bytes, str]:
    """Encode parts as a multipart/form-data body; returns (body, content-type header)."""
    body = bytearray()
    for part in parts:
        disposition = f'form-data; name="{part.name}"'
        if part.filename is not None:
            disposition += f'; filename="{part.filename}"'
        body += f"--{boundary}\r\n".encode()
        body += f"Content-Disposition: {disposition}\r\n".encode()
        if part.content_type is not None:
            body += f"Content-Type: {part.content_type}\r\n".encode()
        body += b"\r\n" + part.data + b"\r\n"
    body += f"--{boundary}--\r\n".encode()
    return bytes(body), f"multipart/form-data; boundary={boundary}"


@pytest.fixture
def make_upload_request():
    """Factory fixture building a mock upload request for the ``upfile`` field."""

    def _make(
        filename: str,
        content_type: str | None,
        data: bytes,
        field_name: str = "upfile",
        with_length: bool = True,
    ) -> MockRequest:
        body, header = build_multipart([Part(field_name, data, filename=filename, content_type=content_type)])
        headers = {"Content-Type": header}
        if with_length:
            headers["Content-Length"] = str(len(body))
        return MockRequest(body=body, headers=MockHeaders(headers))

    return _make


@pytest.fixture
def make_decoded_request():
    """Factory fixture for a multipart request as Robyn hands it over: body and files already decoded."""

    def _make(files: dict[str, bytes], envelope_size: int = 256) -> MockRequest:
        body = next(iter(files.values()), b"")
        size = sum(len(data) for data in files.values()) + envelope_size
        headers = {
            "Content-Type": f"multipart/form-data; boundary={BOUNDARY}",
            "Content-Length": str(size),
        }
        return MockRequest(body=body, headers=MockHeaders(headers), files=dict(files))

    return _make


# -----------------------------------------------------------------------------
# State fixture
# -----------------------------------------------------------------------------


@pytest.fixture
def test_state() -> State:
    """State holding a default pipeline and no storage."""
    state = State()
    state.storage = None
    state.pipeline = IntakePipeline()
    yield state
    state.clear()


@pytest.fixture
def global_dependencies(test_state: State) -> dict:
    """Setup global dependencies for tests."""
    return {"state": test_state}
