"""File-like byte streams over upload buffers and read sources."""

from __future__ import annotations

import io
import logging

from cloudstore.client.models import FileMetadata
from cloudstore.download.read_source import HttpResponseInfo, ReadSource
from cloudstore.exceptions import StorageError
from cloudstore.upload.chunked_write_buffer import AutoFinalize, ChunkedWriteBuffer
from cloudstore.upload.resumable_upload_session import LastResponse, UploadResult

logger = logging.getLogger(__name__)


class FileWriteStream(io.RawIOBase):
    """Writable stream uploading its content through a resumable session.

    ``close()`` finalizes the upload. ``suspend()`` closes the stream but
    leaves the session open so the upload can be resumed later through
    ``resumable_session_id``. Leaving a ``with`` block does one or the other
    according to the buffer's auto-finalize setting.
    """

    def __init__(self, buffer: ChunkedWriteBuffer):
        super().__init__()
        self._buffer = buffer

    def writable(self) -> bool:
        return True

    def write(self, data: bytes | bytearray | memoryview) -> int:
        self._checkClosed()
        return self._buffer.write(data)

    def flush(self) -> None:
        super().flush()
        self._buffer.flush()

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._buffer.close()
        finally:
            super().close()

    def suspend(self) -> None:
        """Close the stream without finalizing the upload."""
        if self.closed:
            return
        logger.info(
            "Suspending upload %s at byte %d",
            self._buffer.resumable_session_id,
            self._buffer.next_expected_byte,
        )
        super().close()

    def __exit__(self, *args: object) -> None:
        if self._buffer.auto_finalize is AutoFinalize.ENABLED:
            self.close()
        else:
            self.suspend()

    def __del__(self) -> None:
        if self.closed:
            return
        try:
            self.__exit__(None, None, None)
        except StorageError:
            logger.exception("Failed to dispose of upload stream")

    @property
    def is_open(self) -> bool:
        return not self.closed and self._buffer.is_open

    @property
    def last_status(self) -> LastResponse:
        return self._buffer.last_response

    @property
    def resumable_session_id(self) -> str:
        return self._buffer.resumable_session_id

    @property
    def next_expected_byte(self) -> int:
        return self._buffer.next_expected_byte

    @property
    def metadata(self) -> FileMetadata | None:
        """Metadata of the uploaded file, once the upload is done."""
        response = self._buffer.last_response
        if isinstance(response, UploadResult):
            return response.final_metadata
        return None


class FileReadStream(io.RawIOBase):
    """Readable stream over a read source.

    Reads pull at least ``buffer_size`` bytes from the source and serve the
    rest of them from memory.
    """

    def __init__(self, source: ReadSource, buffer_size: int):
        super().__init__()
        self._source = source
        self._buffer_size = buffer_size
        self._pending = b""
        self._status: StorageError | None = None
        self._headers: dict[str, str] = {}

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:
        self._checkClosed()
        if not self._pending and self._source.is_open():
            try:
                result = self._source.read(max(len(buffer), self._buffer_size))
            except StorageError as error:
                self._status = error
                raise
            self._headers = result.response.headers
            self._pending = result.payload
        count = min(len(buffer), len(self._pending))
        buffer[:count] = self._pending[:count]
        self._pending = self._pending[count:]
        return count

    def close(self) -> None:
        if self.closed:
            return
        try:
            if self._source.is_open():
                info: HttpResponseInfo = self._source.close()
                self._headers = info.headers
        finally:
            super().close()

    @property
    def is_open(self) -> bool:
        return not self.closed and (bool(self._pending) or self._source.is_open())

    @property
    def status(self) -> StorageError | None:
        """The error that stopped the download, if any."""
        return self._status

    @property
    def headers(self) -> dict[str, str]:
        return self._headers
