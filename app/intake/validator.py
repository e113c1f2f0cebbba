"""Cross-validation of the declared MIME type against the sniffed one."""

from collections.abc import Mapping

from app.intake.errors import TypeMismatch, TypeUndetermined
from app.models.core import Detected, SniffResult, Undetermined

# declared type -> sniffed types accepted in its place. Empty: exact match only.
EQUIVALENT_TYPES: Mapping[str, frozenset[str]] = {}


def cross_validate(
    declared_type: str,
    result: SniffResult,
    equivalents: Mapping[str, frozenset[str]] = EQUIVALENT_TYPES,
) -> str:
    """Return the sniffed MIME type when it agrees with the declared one.

    Comparison is case-sensitive and parameters are not stripped, so
    ``text/plain; charset=utf-8`` never matches ``text/plain``.
    """
    match result:
        case Undetermined():
            raise TypeUndetermined()
        case Detected(mime_type=mime_type) if mime_type == declared_type:
            return mime_type
        case Detected(mime_type=mime_type) if mime_type in equivalents.get(declared_type, frozenset()):
            return mime_type
        case Detected(mime_type=mime_type):
            raise TypeMismatch(f"File content does not match MIME type: declared {declared_type}, found {mime_type}")
    raise TypeError(f"Unexpected sniff result: {result!r}")
