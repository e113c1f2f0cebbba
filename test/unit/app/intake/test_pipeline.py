"""Tests for the intake pipeline composition."""

from unittest.mock import MagicMock

import pytest
from conftest import JPEG_HEADER, PNG_HEADER, Part, build_multipart

from app.core.settings import Settings
from app.intake.gate import DEFAULT_ALLOWED_TYPES, TypeGate
from app.intake.pipeline import IntakePipeline
from app.intake.receiver import SizeBoundedReceiver, iter_chunks
from app.intake.sniffer import ContentSniffer
from app.models.core import Accepted, Detected, ErrorKind, Rejected, UploadedFile


def upload(declared_type: str, content: bytes, name: str = "file") -> UploadedFile:
    return UploadedFile(name=name, declared_type=declared_type, content=content)


class TestEvaluate:
    """Tests for IntakePipeline.evaluate()."""

    def test_accepts_matching_content(self) -> None:
        outcome = IntakePipeline().evaluate(upload("image/png", PNG_HEADER, "logo.png"))
        assert outcome == Accepted(name="logo.png", declared_type="image/png", size=len(PNG_HEADER))

    def test_gate_runs_before_sniffing(self) -> None:
        sniffer = MagicMock(spec=ContentSniffer)
        pipeline = IntakePipeline(sniffer=sniffer)

        outcome = pipeline.evaluate(upload("application/x-msdownload", JPEG_HEADER))

        assert outcome == Rejected(kind=ErrorKind.INVALID_DECLARED_TYPE, message="Invalid file type")
        sniffer.sniff.assert_not_called()

    @pytest.mark.parametrize(
        "content",
        [JPEG_HEADER, PNG_HEADER, b"plain text", b"\x00\x01\x02", b"MZ\x90\x00" + b"\x00" * 60 + b"PE\x00\x00"],
    )
    def test_unlisted_type_rejected_regardless_of_content(self, content: bytes) -> None:
        outcome = IntakePipeline().evaluate(upload("application/x-msdownload", content))
        assert isinstance(outcome, Rejected)
        assert outcome.kind == ErrorKind.INVALID_DECLARED_TYPE

    def test_mismatch(self) -> None:
        outcome = IntakePipeline().evaluate(upload("image/jpeg", b"I am really a text file\n"))
        assert isinstance(outcome, Rejected)
        assert outcome.kind == ErrorKind.TYPE_MISMATCH

    def test_undetermined(self) -> None:
        outcome = IntakePipeline().evaluate(upload("audio/mpeg", b"\x00\x13\x37\x00" * 16))
        assert isinstance(outcome, Rejected)
        assert outcome.kind == ErrorKind.TYPE_UNDETERMINED

    @pytest.mark.parametrize(
        ("declared", "content"),
        [
            ("image/jpeg", JPEG_HEADER),
            ("image/jpeg", PNG_HEADER),
            ("image/png", PNG_HEADER),
            ("text/plain", b"notes\n"),
            ("text/plain", JPEG_HEADER),
            ("application/pdf", b"%PDF-1.4\n"),
            ("audio/mpeg", b"ID3\x03\x00"),
            ("video/mp4", b"\x00\x00\x00\x18ftypmp42"),
        ],
    )
    def test_accepted_only_when_declared_equals_sniffed(self, declared: str, content: bytes) -> None:
        pipeline = IntakePipeline()
        outcome = pipeline.evaluate(upload(declared, content))
        sniffed = pipeline.sniffer.sniff(content)

        if isinstance(outcome, Accepted):
            assert sniffed == Detected(outcome.declared_type)
        else:
            assert sniffed != Detected(declared)


class TestRun:
    """Tests for IntakePipeline.run()."""

    def test_full_run_accepts(self) -> None:
        data = JPEG_HEADER + b"\x00" * 64
        body, content_type = build_multipart([Part("upfile", data, "photo.jpg", "image/jpeg")])

        outcome, received = IntakePipeline().run(iter_chunks(body), content_type, len(body))

        assert outcome == Accepted(name="photo.jpg", declared_type="image/jpeg", size=len(data))
        assert received is not None and received.content == data

    def test_receiver_failure_short_circuits(self) -> None:
        gate = MagicMock(spec=TypeGate)
        body, content_type = build_multipart([Part("other", b"x", "x.txt", "text/plain")])

        outcome, received = IntakePipeline(gate=gate).run(iter_chunks(body), content_type)

        assert outcome.kind == ErrorKind.MISSING_FILE
        assert received is None
        gate.check.assert_not_called()

    def test_unclassified_errors_propagate(self) -> None:
        receiver = MagicMock(spec=SizeBoundedReceiver)
        receiver.receive.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            IntakePipeline(receiver=receiver).run([b""], "multipart/form-data; boundary=x")


class TestRunDecoded:
    """Tests for IntakePipeline.run_decoded()."""

    def test_decoded_form_accepts(self) -> None:
        data = JPEG_HEADER + b"\x00" * 64

        outcome, received = IntakePipeline().run_decoded({"photo.jpg": data})

        assert outcome == Accepted(name="photo.jpg", declared_type="image/jpeg", size=len(data))
        assert received is not None and received.content == data

    def test_empty_form_is_missing_file(self) -> None:
        outcome, received = IntakePipeline().run_decoded({})

        assert outcome.kind == ErrorKind.MISSING_FILE
        assert received is None


class TestFromSettings:
    """Tests for building the pipeline from configuration."""

    def test_defaults(self) -> None:
        pipeline = IntakePipeline.from_settings(Settings())
        assert pipeline.receiver.field == "upfile"
        assert pipeline.receiver.max_file_size == 1024 * 1024
        assert pipeline.gate.allowed == DEFAULT_ALLOWED_TYPES

    def test_allow_list_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ALLOWED_MIME_TYPES", '["image/png"]')
        monkeypatch.setenv("MAX_FILE_SIZE", "2048")
        monkeypatch.setenv("UPLOAD_FIELD", "document")

        pipeline = IntakePipeline.from_settings(Settings())

        assert pipeline.gate.allowed == frozenset({"image/png"})
        assert pipeline.receiver.max_file_size == 2048
        assert pipeline.receiver.field == "document"
