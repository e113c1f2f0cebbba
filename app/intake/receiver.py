"""Size-bounded multipart/form-data receiver.

A raw body is fed to python-multipart's streaming parser chunk by chunk; file bytes
are accumulated only for the expected field and decoding stops as soon as the
ceiling is crossed. A form the server has already decoded goes through
``SizeBoundedReceiver.receive_decoded`` under the same limits.
"""

import mimetypes
from collections.abc import Iterable, Iterator, Mapping

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from app.core.logger import LogIcon, logger
from app.intake.errors import MalformedMultipart, MissingFile, PayloadTooLarge
from app.models.core import UploadedFile

DEFAULT_MAX_FILE_SIZE = 1024 * 1024
DEFAULT_OVERHEAD = 16 * 1024
DEFAULT_CHUNK_SIZE = 64 * 1024
MAX_PART_HEADER_SIZE = 8 * 1024
DEFAULT_DECLARED_TYPE = "application/octet-stream"

# Office extensions the built-in table may lack
OFFICE_EXTENSIONS = {
    ".doc": "application/msword",
    ".xls": "application/vnd.ms-excel",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def _extension_types() -> mimetypes.MimeTypes:
    """Built-in extension table only, independent of the host mime.types files."""
    types = mimetypes.MimeTypes()
    for extension, mime_type in OFFICE_EXTENSIONS.items():
        types.add_type(mime_type, extension)
    return types


_EXTENSION_TYPES = _extension_types()


def as_bytes(data: bytes | str) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


def iter_chunks(body: bytes | str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """Slice a buffered request body into parser-sized chunks."""
    view = memoryview(as_bytes(body))
    for start in range(0, len(view), chunk_size):
        yield bytes(view[start : start + chunk_size])


def is_multipart(content_type: str | None) -> bool:
    mime, _ = parse_options_header(content_type or "")
    return mime == b"multipart/form-data"


def has_multipart_envelope(body: bytes, content_type: str | None) -> bool:
    """Whether body still carries the boundary framing announced in content_type.

    Robyn decodes multipart requests itself and then hands handlers the file
    content in ``request.body`` rather than the raw envelope.
    """
    _, options = parse_options_header(content_type or "")
    boundary = options.get(b"boundary")
    return bool(boundary) and body.lstrip(b"\r\n").startswith(b"--" + boundary)


def declared_type_for(filename: str) -> str:
    """Content-Type a client would declare for filename, from its extension."""
    guessed, _ = _EXTENSION_TYPES.guess_type(filename)
    return guessed or DEFAULT_DECLARED_TYPE


class _FormCollector:
    """Per-request parser callbacks; keeps only the expected file part."""

    def __init__(self, field: str, max_file_size: int) -> None:
        self.field = field
        self.max_file_size = max_file_size

        self.name: str | None = None
        self.declared_type: str | None = None
        self.content = bytearray()
        self.finished = False

        self._headers: dict[bytes, bytes] = {}
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._header_bytes = 0
        self._capturing = False

    @property
    def callbacks(self) -> dict:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_end": self.on_end,
        }

    def on_part_begin(self) -> None:
        self._headers = {}
        self._header_bytes = 0
        self._capturing = False

    def _count_header(self, length: int) -> None:
        self._header_bytes += length
        if self._header_bytes > MAX_PART_HEADER_SIZE:
            raise MalformedMultipart("Part headers too large")

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._count_header(end - start)
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._count_header(end - start)
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[bytes(self._header_field).lower()] = bytes(self._header_value)
        self._header_field.clear()
        self._header_value.clear()

    def on_headers_finished(self) -> None:
        disposition, options = parse_options_header(self._headers.get(b"content-disposition"))
        if disposition != b"form-data":
            raise MalformedMultipart("Part is missing a form-data Content-Disposition header")

        filename = options.get(b"filename")
        if not filename:
            # Plain form fields are skipped without buffering
            return

        field_name = options.get(b"name", b"").decode("utf-8", errors="replace")
        if field_name != self.field:
            return
        if self.name is not None:
            raise MalformedMultipart("Unexpected file field: only one file may be uploaded")

        content_type = self._headers.get(b"content-type", b"").decode("latin-1").strip()
        self.name = filename.decode("utf-8", errors="replace")
        self.declared_type = content_type or DEFAULT_DECLARED_TYPE
        self._capturing = True

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if not self._capturing:
            return
        if len(self.content) + (end - start) > self.max_file_size:
            raise PayloadTooLarge(self.max_file_size)
        self.content += data[start:end]

    def on_part_end(self) -> None:
        self._capturing = False

    def on_end(self) -> None:
        self.finished = True


class SizeBoundedReceiver:
    """Decodes one named file field from a multipart body under a byte ceiling."""

    def __init__(
        self,
        field: str = "upfile",
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        overhead: int = DEFAULT_OVERHEAD,
    ) -> None:
        self.field = field
        self.max_file_size = max_file_size
        self.overhead = overhead

    @property
    def max_body_size(self) -> int:
        """Largest body that can still hold a file at the ceiling plus its envelope."""
        return self.max_file_size + self.overhead

    def check_content_length(self, content_length: int | str | None) -> None:
        """Reject a declared body length that can never fit, before reading anything."""
        if content_length is None or content_length == "":
            return
        try:
            length = int(content_length)
        except (TypeError, ValueError) as ex:
            raise MalformedMultipart("Invalid Content-Length header") from ex
        if length < 0:
            raise MalformedMultipart("Invalid Content-Length header")
        if length > self.max_body_size:
            raise PayloadTooLarge(self.max_file_size)

    def boundary(self, content_type: str | None) -> bytes:
        mime, options = parse_options_header(content_type or "")
        if mime != b"multipart/form-data":
            raise MalformedMultipart("Expected a multipart/form-data request")
        boundary = options.get(b"boundary")
        if not boundary:
            raise MalformedMultipart("Missing multipart boundary")
        return boundary

    def receive(
        self,
        chunks: Iterable[bytes],
        content_type: str | None,
        content_length: int | str | None = None,
    ) -> UploadedFile:
        self.check_content_length(content_length)
        collector = _FormCollector(self.field, self.max_file_size)
        parser = MultipartParser(self.boundary(content_type), collector.callbacks)

        received = 0
        try:
            for chunk in chunks:
                received += len(chunk)
                if received > self.max_body_size:
                    raise PayloadTooLarge(self.max_file_size)
                parser.write(chunk)
            parser.finalize()
        except MultipartParseError as ex:
            raise MalformedMultipart(f"Malformed multipart body: {ex}") from ex

        if not collector.finished:
            raise MalformedMultipart("Multipart body ended before the closing boundary")
        if collector.name is None or collector.declared_type is None:
            raise MissingFile(f"No file uploaded under field '{self.field}'")

        upload = UploadedFile(
            name=collector.name,
            declared_type=collector.declared_type,
            content=bytes(collector.content),
        )
        logger.info("File received", icon=LogIcon.UPLOAD, upload_name=upload.name, size=upload.size)
        return upload

    def receive_decoded(
        self,
        files: Mapping[str, bytes | str],
        content_length: int | str | None = None,
    ) -> UploadedFile:
        """Take the file out of a form the server already decoded.

        ``files`` maps client filename to content, as Robyn's ``request.files`` does.
        Part headers and field names are gone at that point, so the declared type is
        derived from the filename extension and any single file stands for the field.
        """
        self.check_content_length(content_length)

        named = {name: data for name, data in files.items() if name}
        if not named:
            raise MissingFile(f"No file uploaded under field '{self.field}'")
        if len(named) > 1:
            raise MalformedMultipart("Unexpected file field: only one file may be uploaded")

        ((name, data),) = named.items()
        content = as_bytes(data)
        if len(content) > self.max_file_size:
            raise PayloadTooLarge(self.max_file_size)

        upload = UploadedFile(name=name, declared_type=declared_type_for(name), content=content)
        logger.info(
            "File received",
            icon=LogIcon.UPLOAD,
            upload_name=upload.name,
            declared_type=upload.declared_type,
            size=upload.size,
        )
        return upload
