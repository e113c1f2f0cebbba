"""Upload intake pipeline: receive, gate, sniff, cross-validate.

Each stage either hands its result to the next one or raises an ``IntakeError``;
the first failure short-circuits the rest and becomes a ``Rejected`` outcome.
"""

from collections.abc import Callable, Iterable, Mapping

from app.core.logger import LogIcon, logger
from app.core.settings import Settings
from app.intake.errors import IntakeError
from app.intake.gate import TypeGate
from app.intake.receiver import SizeBoundedReceiver
from app.intake.sniffer import ContentSniffer
from app.intake.validator import cross_validate
from app.models.core import Accepted, Rejected, UploadedFile, ValidationOutcome


def rejected(error: IntakeError) -> Rejected:
    return Rejected(kind=error.kind, message=error.message)


class IntakePipeline:
    """Stateless after construction; one instance serves every request."""

    __slots__ = ("receiver", "gate", "sniffer")

    def __init__(
        self,
        receiver: SizeBoundedReceiver | None = None,
        gate: TypeGate | None = None,
        sniffer: ContentSniffer | None = None,
    ) -> None:
        self.receiver = receiver or SizeBoundedReceiver()
        self.gate = gate or TypeGate()
        self.sniffer = sniffer or ContentSniffer()

    @classmethod
    def from_settings(cls, settings: Settings) -> "IntakePipeline":
        receiver = SizeBoundedReceiver(
            field=settings.UPLOAD_FIELD,
            max_file_size=settings.MAX_FILE_SIZE,
            overhead=settings.MULTIPART_OVERHEAD,
        )
        return cls(receiver=receiver, gate=TypeGate(settings.ALLOWED_MIME_TYPES), sniffer=ContentSniffer())

    def evaluate(self, upload: UploadedFile) -> ValidationOutcome:
        """Validate an already received file."""
        try:
            self.gate.check(upload.declared_type)
            result = self.sniffer.sniff(upload.content)
            logger.info("Content sniffed", icon=LogIcon.DETECTION, declared_type=upload.declared_type, detected=result)
            cross_validate(upload.declared_type, result)
        except IntakeError as ex:
            logger.info("Upload rejected", icon=LogIcon.FORBIDDEN, kind=ex.kind, upload_name=upload.name)
            return rejected(ex)

        logger.info("Upload accepted", icon=LogIcon.SUCCESS, upload_name=upload.name, size=upload.size)
        return Accepted(name=upload.name, declared_type=upload.declared_type, size=upload.size)

    def _accept(self, receive: Callable[[], UploadedFile]) -> tuple[ValidationOutcome, UploadedFile | None]:
        try:
            upload = receive()
        except IntakeError as ex:
            logger.info("Upload rejected", icon=LogIcon.FORBIDDEN, kind=ex.kind, reason=ex.message)
            return rejected(ex), None
        return self.evaluate(upload), upload

    def run(
        self,
        chunks: Iterable[bytes],
        content_type: str | None,
        content_length: int | str | None = None,
    ) -> tuple[ValidationOutcome, UploadedFile | None]:
        """Run every stage over a raw multipart body; returns the outcome and the received file, if any."""
        return self._accept(lambda: self.receiver.receive(chunks, content_type, content_length))

    def run_decoded(
        self,
        files: Mapping[str, bytes | str],
        content_length: int | str | None = None,
    ) -> tuple[ValidationOutcome, UploadedFile | None]:
        """Same as ``run`` for a form the server already decoded into filename -> content."""
        return self._accept(lambda: self.receiver.receive_decoded(files, content_length))
