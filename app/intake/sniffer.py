"""Content sniffing against an ordered magic-byte table.

Only the first ``SNIFF_WINDOW`` bytes of a buffer are ever inspected. Entries are
checked in order and the first match wins, so container formats with a
distinguishing inner structure (OOXML inside zip, Word/Excel inside OLE2) must
be listed before the bare container.

When no binary signature matches, the buffer is classified as ``text/plain`` if
it looks like prose (see ``looks_like_text``), otherwise the result is
``Undetermined``.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from app.models.core import UNDETERMINED, Detected, SniffResult

SNIFF_WINDOW = 4096

# Control bytes tolerated in text: tab, LF, FF, CR and ESC
TEXT_CONTROL_BYTES = frozenset(b"\t\n\x0c\r\x1b")
MAX_CONTROL_RATIO = 0.05

OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ZIP_MAGIC = b"PK\x03\x04"


@dataclass(frozen=True, slots=True)
class Signature:
    """A magic sequence at a fixed offset, optionally refined by markers in the window.

    ``contains`` holds alternative byte strings; at least one of them must appear
    somewhere in the sniff window for the entry to match.
    """

    mime_type: str
    magic: bytes
    offset: int = 0
    contains: tuple[bytes, ...] = ()

    def matches(self, window: bytes) -> bool:
        end = self.offset + len(self.magic)
        if window[self.offset:end] != self.magic:
            return False
        if self.contains:
            return any(marker in window for marker in self.contains)
        return True


SIGNATURES: tuple[Signature, ...] = (
    # Images
    Signature("image/jpeg", b"\xff\xd8\xff"),
    Signature("image/png", b"\x89PNG\r\n\x1a\n"),
    Signature("image/gif", b"GIF87a"),
    Signature("image/gif", b"GIF89a"),
    # Documents
    Signature("application/pdf", b"%PDF-"),
    # OOXML packages are zips whose first entries live under word/ or xl/
    Signature(
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        ZIP_MAGIC,
        contains=(b"word/",),
    ),
    Signature(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        ZIP_MAGIC,
        contains=(b"xl/",),
    ),
    Signature("application/zip", ZIP_MAGIC),
    Signature("application/zip", b"PK\x05\x06"),
    # Legacy Office: OLE2 compound files, told apart by stream names (UTF-16LE) in the directory
    Signature(
        "application/msword",
        OLE2_MAGIC,
        contains=("WordDocument".encode("utf-16-le"),),
    ),
    Signature(
        "application/vnd.ms-excel",
        OLE2_MAGIC,
        contains=("Workbook".encode("utf-16-le"), "Book".encode("utf-16-le")),
    ),
    Signature("application/x-ole-storage", OLE2_MAGIC),
    # Video: ISO base media with an mp4-family major brand
    Signature("video/mp4", b"ftypisom", offset=4),
    Signature("video/mp4", b"ftypiso2", offset=4),
    Signature("video/mp4", b"ftypmp41", offset=4),
    Signature("video/mp4", b"ftypmp42", offset=4),
    Signature("video/mp4", b"ftypavc1", offset=4),
    Signature("video/mp4", b"ftypdash", offset=4),
    Signature("video/mp4", b"ftypMSNV", offset=4),
    # Audio: ID3v2 tag or a bare MPEG-1/2 layer III frame header
    Signature("audio/mpeg", b"ID3"),
    Signature("audio/mpeg", b"\xff\xfb"),
    Signature("audio/mpeg", b"\xff\xf3"),
    Signature("audio/mpeg", b"\xff\xf2"),
    # Formats we can name but never accept
    Signature("application/x-msdownload", b"MZ", contains=(b"PE\x00\x00", b"This program cannot be run in DOS mode")),
    Signature("application/x-elf", b"\x7fELF"),
    Signature("application/gzip", b"\x1f\x8b"),
    Signature("application/x-rar-compressed", b"Rar!\x1a\x07"),
    Signature("application/x-7z-compressed", b"7z\xbc\xaf\x27\x1c"),
    Signature("image/webp", b"RIFF", contains=(b"WEBP",)),
)


def looks_like_text(window: bytes) -> bool:
    """Heuristic for plain text: non-empty, UTF-8, no NUL, few control characters.

    The window may cut a multi-byte character in half, so up to three trailing
    bytes of an incomplete sequence are forgiven.
    """
    if not window or b"\x00" in window:
        return False

    for trim in range(4):
        candidate = window[: len(window) - trim] if trim else window
        if not candidate:
            return False
        try:
            candidate.decode("utf-8")
            break
        except UnicodeDecodeError as ex:
            # Only forgive a sequence truncated at the very end
            if ex.reason != "unexpected end of data":
                return False
    else:
        return False

    controls = sum(1 for byte in window if byte < 0x20 and byte not in TEXT_CONTROL_BYTES)
    return controls / len(window) <= MAX_CONTROL_RATIO


class ContentSniffer:
    """Derives the canonical MIME type of a buffer from its content."""

    __slots__ = ("signatures", "window")

    def __init__(self, signatures: Sequence[Signature] = SIGNATURES, window: int = SNIFF_WINDOW) -> None:
        self.signatures = tuple(signatures)
        self.window = window

    def sniff(self, content: bytes) -> SniffResult:
        head = content[: self.window]

        for signature in self.signatures:
            if signature.matches(head):
                return Detected(signature.mime_type)

        if looks_like_text(head):
            return Detected("text/plain")

        return UNDETERMINED

