"""
Streaming receiver for the single-file upload form.

Starlette's form parsing spools every part to a temporary file before the
route runs, so nothing could be rejected until the whole body had arrived.
Here the request stream is fed straight into python-multipart's
MultipartParser and the checks run as parser callbacks:

- a part's Content-Type is checked as soon as its headers are complete,
  before any of its body is consumed
- the size ceiling is enforced while the body streams in
- parts other than the `file` field are discarded, never buffered

Raising from a callback stops the parser mid-chunk, and the rest of the
request stream is never read.
"""

import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from ..core.videos.models import MissingFileError, PayloadTooLargeError, ValidationError
from ..core.videos.service import VideoService

logger = logging.getLogger(__name__)

FILE_FIELD = "file"

# Room for boundaries, part headers and a long filename on top of the file itself
MULTIPART_OVERHEAD_BYTES = 64 * 1024


@dataclass
class ReceivedFile:
    """The one accepted file part."""
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes


@dataclass
class _PartState:
    headers: list[tuple[bytes, bytes]] = field(default_factory=list)
    header_field: bytes = b""
    header_value: bytes = b""
    is_upload: bool = False


def check_declared_length(content_length: Optional[str], service: VideoService) -> None:
    """
    Reject a request whose Content-Length already rules it out.

    Anything bigger than the ceiling plus multipart framing cannot hold an
    acceptable file, so it is refused before a single body byte is read.
    """
    if not content_length:
        return
    try:
        declared = int(content_length)
    except ValueError:
        raise ValidationError("Invalid Content-Length")

    if declared > service.max_upload_bytes + MULTIPART_OVERHEAD_BYTES:
        raise PayloadTooLargeError(service.max_upload_bytes)


class SingleFileReceiver:
    """
    Pulls exactly one video out of a multipart/form-data stream.

    Validation order matches the upload contract: a second file part,
    then the part's content type, then its size. A missing file can only
    be known once the stream ends.
    """

    def __init__(self, service: VideoService) -> None:
        self._service = service
        self._part = _PartState()
        self._filename: Optional[str] = None
        self._content_type: Optional[str] = None
        self._chunks: list[bytes] = []
        self._size = 0
        self._files_seen = 0

    async def receive(self, stream: AsyncIterator[bytes], content_type_header: str) -> ReceivedFile:
        """
        Consume the stream up to the first failure, or to the end.

        Raises:
            ValidationError: Any of its subclasses, as soon as the
                offending bytes have been parsed.
        """
        boundary = self._boundary(content_type_header)
        if boundary is None:
            raise MissingFileError()

        parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": self._on_part_begin,
                "on_part_data": self._on_part_data,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
            },
        )

        # bounds the whole body, including parts that are being skipped
        body_limit = self._service.max_upload_bytes + MULTIPART_OVERHEAD_BYTES
        body_size = 0

        try:
            async for chunk in stream:
                if not chunk:
                    continue
                # parse first so a bad header in this chunk is reported ahead of size
                parser.write(chunk)
                body_size += len(chunk)
                if body_size > body_limit:
                    raise PayloadTooLargeError(self._service.max_upload_bytes)
            parser.finalize()
        except MultipartParseError as e:
            logger.warning("Malformed multipart body", extra={"error": str(e)})
            raise ValidationError("Malformed multipart body")

        if self._files_seen == 0:
            raise MissingFileError()

        return ReceivedFile(
            filename=self._filename,
            content_type=self._content_type,
            data=b"".join(self._chunks),
        )

    @staticmethod
    def _boundary(content_type_header: str) -> Optional[bytes]:
        media_type, params = parse_options_header(content_type_header)
        if media_type != b"multipart/form-data":
            return None
        return params.get(b"boundary") or None

    # -----------------------------------------------------------------------
    # Parser callbacks
    # -----------------------------------------------------------------------

    def _on_part_begin(self) -> None:
        self._part = _PartState()

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._part.header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._part.header_value += data[start:end]

    def _on_header_end(self) -> None:
        part = self._part
        part.headers.append((part.header_field.lower(), part.header_value))
        part.header_field = b""
        part.header_value = b""

    def _on_headers_finished(self) -> None:
        headers = dict(self._part.headers)
        _, options = parse_options_header(headers.get(b"content-disposition", b""))

        name = options.get(b"name", b"").decode("utf-8", errors="replace")
        raw_filename = options.get(b"filename")

        # text fields and other file fields are skipped
        if name != FILE_FIELD or raw_filename is None:
            return

        self._files_seen += 1
        if self._files_seen > 1:
            raise ValidationError("Only one file allowed")

        content_type = headers.get(b"content-type")
        self._content_type = content_type.decode("latin-1") if content_type is not None else None
        self._filename = raw_filename.decode("utf-8", errors="replace") or None

        self._service.check_content_type(self._content_type)
        self._part.is_upload = True

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if not self._part.is_upload:
            return
        self._size += end - start
        self._service.check_size(self._size)
        self._chunks.append(data[start:end])
