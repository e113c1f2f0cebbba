"""Error taxonomy for the upload intake pipeline."""

from typing import ClassVar

from app.models.core import ErrorKind


class IntakeError(Exception):
    """Base class for client-attributable intake failures."""

    kind: ClassVar[ErrorKind]
    default_message: ClassVar[str] = "Upload rejected"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class MalformedMultipart(IntakeError):
    kind = ErrorKind.MALFORMED_MULTIPART
    default_message = "Request body is not a valid multipart/form-data payload"


class MissingFile(IntakeError):
    kind = ErrorKind.MISSING_FILE
    default_message = "No file was uploaded"


class PayloadTooLarge(IntakeError):
    kind = ErrorKind.PAYLOAD_TOO_LARGE
    default_message = "File too large"

    def __init__(self, limit: int, message: str | None = None) -> None:
        self.limit = limit
        super().__init__(message or f"File too large: the limit is {limit} bytes")


class InvalidDeclaredType(IntakeError):
    kind = ErrorKind.INVALID_DECLARED_TYPE
    default_message = "Invalid file type"


class TypeUndetermined(IntakeError):
    kind = ErrorKind.TYPE_UNDETERMINED
    default_message = "Unable to determine file type from content"


class TypeMismatch(IntakeError):
    kind = ErrorKind.TYPE_MISMATCH
    default_message = "File content does not match MIME type"


class StorageUnavailable(IntakeError):
    """Raised by storage backends; never by the validation stages."""

    kind = ErrorKind.STORAGE_UNAVAILABLE
    default_message = "Storage backend unavailable"
