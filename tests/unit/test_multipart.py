"""
Unit tests for the streaming upload receiver.

The request stream is simulated by CountingStream, which records how many
bytes the receiver pulled. That is what shows a bad upload stops being
read at the point it is rejected, rather than after the whole body.
"""

import pytest

from videobg.api.multipart import (
    MULTIPART_OVERHEAD_BYTES,
    SingleFileReceiver,
    check_declared_length,
)
from videobg.core.videos.models import (
    MissingFileError,
    PayloadTooLargeError,
    UnsupportedTypeError,
    ValidationError,
)
from videobg.core.videos.service import VideoService

MiB = 1024 * 1024
BOUNDARY = "videobg-test-boundary"
FORM_CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"


class CountingStream:
    """Async byte stream in fixed-size chunks that counts what was consumed."""

    def __init__(self, body: bytes, chunk_size: int) -> None:
        self._body = body
        self._chunk_size = chunk_size
        self.bytes_read = 0

    def __aiter__(self):
        return self._chunks()

    async def _chunks(self):
        for start in range(0, len(self._body), self._chunk_size):
            chunk = self._body[start:start + self._chunk_size]
            self.bytes_read += len(chunk)
            yield chunk


def multipart_body(*parts) -> bytes:
    """Build a form body from (name, filename, content_type, data) tuples."""
    body = b""
    for name, filename, content_type, data in parts:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        body += f"--{BOUNDARY}\r\nContent-Disposition: {disposition}\r\n".encode("utf-8")
        if content_type is not None:
            body += f"Content-Type: {content_type}\r\n".encode("utf-8")
        body += b"\r\n" + data + b"\r\n"
    body += f"--{BOUNDARY}--\r\n".encode("utf-8")
    return body


@pytest.fixture
def service(store) -> VideoService:
    return VideoService(
        store=store,
        public_base_url="https://bg.example.com",
        max_upload_bytes=MiB,
    )


async def receive(service, body: bytes, chunk_size: int = 16 * 1024):
    stream = CountingStream(body, chunk_size)
    received = await SingleFileReceiver(service).receive(stream, FORM_CONTENT_TYPE)
    return received, stream


class TestReceive:
    """Tests for accepted uploads."""

    @pytest.mark.asyncio
    async def test_returns_file_bytes_and_headers(self, service):
        body = multipart_body(("file", "clip.mp4", "video/mp4", b"movie-bytes"))

        received, stream = await receive(service, body, chunk_size=7)

        assert received.data == b"movie-bytes"
        assert received.filename == "clip.mp4"
        assert received.content_type == "video/mp4"
        assert stream.bytes_read == len(body)

    @pytest.mark.asyncio
    async def test_text_fields_are_ignored(self, service):
        body = multipart_body(
            ("note", None, None, b"hello"),
            ("file", "clip.mp4", "video/mp4", b"movie"),
            ("other", "x.txt", "text/plain", b"ignored"),
        )

        received, _ = await receive(service, body)

        assert received.data == b"movie"

    @pytest.mark.asyncio
    async def test_utf8_filename_decoded(self, service):
        body = multipart_body(("file", "Bãi biển.mp4", "video/mp4", b"movie"))

        received, _ = await receive(service, body)

        assert received.filename == "Bãi biển.mp4"

    @pytest.mark.asyncio
    async def test_file_exactly_at_ceiling_accepted(self, service):
        body = multipart_body(("file", "clip.mp4", "video/mp4", b"x" * MiB))

        received, _ = await receive(service, body, chunk_size=64 * 1024)

        assert len(received.data) == MiB


class TestRejectEarly:
    """Rejections stop consuming the stream at the offending bytes."""

    @pytest.mark.asyncio
    async def test_wrong_type_rejected_at_part_header(self, service):
        """A 5 MiB webm is refused after the first chunk, not after 5 MiB."""
        body = multipart_body(("file", "clip.webm", "video/webm", b"w" * (5 * MiB)))
        stream = CountingStream(body, 16 * 1024)

        with pytest.raises(UnsupportedTypeError):
            await SingleFileReceiver(service).receive(stream, FORM_CONTENT_TYPE)

        assert stream.bytes_read == 16 * 1024

    @pytest.mark.asyncio
    async def test_oversized_file_rejected_while_streaming(self, service):
        body = multipart_body(("file", "big.mp4", "video/mp4", b"x" * (3 * MiB)))
        stream = CountingStream(body, 64 * 1024)

        with pytest.raises(PayloadTooLargeError):
            await SingleFileReceiver(service).receive(stream, FORM_CONTENT_TYPE)

        assert stream.bytes_read <= MiB + 2 * 64 * 1024

    @pytest.mark.asyncio
    async def test_second_file_rejected_before_its_body(self, service):
        body = multipart_body(
            ("file", "a.mp4", "video/mp4", b"a"),
            ("file", "b.mp4", "video/mp4", b"b" * (2 * MiB)),
        )
        stream = CountingStream(body, 16 * 1024)

        with pytest.raises(ValidationError, match="Only one file allowed"):
            await SingleFileReceiver(service).receive(stream, FORM_CONTENT_TYPE)

        assert stream.bytes_read == 16 * 1024

    @pytest.mark.asyncio
    async def test_oversized_skipped_field_bounded(self, service):
        """Parts that are discarded still count towards the body limit."""
        body = multipart_body(("note", None, None, b"n" * (3 * MiB)))
        stream = CountingStream(body, 64 * 1024)

        with pytest.raises(PayloadTooLargeError):
            await SingleFileReceiver(service).receive(stream, FORM_CONTENT_TYPE)

        assert stream.bytes_read <= MiB + MULTIPART_OVERHEAD_BYTES + 64 * 1024

    @pytest.mark.asyncio
    async def test_missing_content_type_rejected(self, service):
        body = multipart_body(("file", "clip.mp4", None, b"movie"))
        stream = CountingStream(body, 16 * 1024)

        with pytest.raises(UnsupportedTypeError):
            await SingleFileReceiver(service).receive(stream, FORM_CONTENT_TYPE)


class TestMissingFile:
    """Tests for requests that carry no file part."""

    @pytest.mark.asyncio
    async def test_only_text_fields(self, service):
        body = multipart_body(("file", None, None, b"not a file"))
        stream = CountingStream(body, 16 * 1024)

        with pytest.raises(MissingFileError):
            await SingleFileReceiver(service).receive(stream, FORM_CONTENT_TYPE)

    @pytest.mark.asyncio
    async def test_not_a_multipart_request(self, service):
        stream = CountingStream(b"note=hello", 16 * 1024)

        with pytest.raises(MissingFileError):
            await SingleFileReceiver(service).receive(stream, "application/x-www-form-urlencoded")

        assert stream.bytes_read == 0


class TestDeclaredLength:
    """Tests for the Content-Length pre-check."""

    def test_absent_header_allowed(self, service):
        check_declared_length(None, service)

    def test_within_limit_allowed(self, service):
        check_declared_length(str(MiB + MULTIPART_OVERHEAD_BYTES), service)

    def test_over_limit_rejected(self, service):
        with pytest.raises(PayloadTooLargeError):
            check_declared_length(str(MiB + MULTIPART_OVERHEAD_BYTES + 1), service)

    def test_garbage_rejected(self, service):
        with pytest.raises(ValidationError, match="Content-Length"):
            check_declared_length("lots", service)
