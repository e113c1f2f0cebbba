"""Declared-type allow-list gate."""

from collections.abc import Iterable

from app.core.logger import LogIcon, logger
from app.intake.errors import InvalidDeclaredType

DEFAULT_ALLOWED_TYPES: frozenset[str] = frozenset(
    {
        # Images
        "image/jpeg",
        "image/png",
        "image/gif",
        # Text
        "text/plain",
        # Documents
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        # Audio / video
        "audio/mpeg",
        "video/mp4",
    }
)


class TypeGate:
    """Deny-by-default check of the client-declared MIME type."""

    __slots__ = ("allowed",)

    def __init__(self, allowed: Iterable[str] | None = None) -> None:
        self.allowed = frozenset(DEFAULT_ALLOWED_TYPES if allowed is None else allowed)

    def __contains__(self, declared_type: str) -> bool:
        return declared_type in self.allowed

    def check(self, declared_type: str) -> None:
        """Raise InvalidDeclaredType unless the declared type is allow-listed verbatim."""
        if declared_type not in self.allowed:
            logger.info("Declared type not allowed", icon=LogIcon.FORBIDDEN, declared_type=declared_type)
            raise InvalidDeclaredType()
