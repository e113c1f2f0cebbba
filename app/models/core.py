"""Core models for the upload intake pipeline."""

from dataclasses import dataclass
from enum import StrEnum


class ErrorKind(StrEnum):
    """Rejection classification reported to clients."""

    MALFORMED_MULTIPART = "malformed_multipart"
    MISSING_FILE = "missing_file"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    INVALID_DECLARED_TYPE = "invalid_file_type"
    TYPE_UNDETERMINED = "type_undetermined"
    TYPE_MISMATCH = "type_mismatch"
    STORAGE_UNAVAILABLE = "storage_unavailable"


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """A single file decoded from a multipart/form-data request.

    ``name`` is whatever the client sent and must never be used as a filesystem path.
    """

    name: str
    declared_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True, slots=True)
class Detected:
    """Sniffing matched a known format."""

    mime_type: str


@dataclass(frozen=True, slots=True)
class Undetermined:
    """Sniffing found no signature and the content is not plausible text."""


UNDETERMINED = Undetermined()

type SniffResult = Detected | Undetermined


@dataclass(frozen=True, slots=True)
class Accepted:
    name: str
    declared_type: str
    size: int


@dataclass(frozen=True, slots=True)
class Rejected:
    kind: ErrorKind
    message: str


type ValidationOutcome = Accepted | Rejected
