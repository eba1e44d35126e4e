"""Write-side buffering for resumable uploads.

The buffer accepts arbitrary writes and only hands chunk-quantum aligned
payloads to the upload session, keeping the unaligned tail for the next flush
or for the final chunk.
"""

from __future__ import annotations

import logging
from enum import Enum

from cloudstore.exceptions import StatusCode, StorageError
from cloudstore.upload.buffer_sequence import BufferSequence, BytesLike
from cloudstore.upload.resumable_upload_session import (
    ErrorUploadSession,
    LastResponse,
    ResumableUploadSession,
    UploadResult,
)

logger = logging.getLogger(__name__)


class AutoFinalize(str, Enum):
    """Whether disposing of a writer finalizes the upload."""

    ENABLED = "enabled"
    DISABLED = "disabled"


def round_up_to_quantum(value: int, quantum: int) -> int:
    """Round ``value`` up to the next multiple of ``quantum``."""
    if quantum <= 0:
        return value
    return ((value + quantum - 1) // quantum) * quantum


class ChunkedWriteBuffer:
    """Accumulate writes and flush quantum-aligned chunks through a session.

    A buffer is owned by a single writer and is not safe for concurrent use.
    """

    def __init__(
        self,
        session: ResumableUploadSession,
        max_buffer_size: int,
        auto_finalize: AutoFinalize = AutoFinalize.ENABLED,
    ):
        """Initialize the buffer.

        Args:
            session: Session receiving the chunks, usually a retrying one.
            max_buffer_size: Buffer capacity. Rounded up to a multiple of the
                session chunk quantum.
            auto_finalize: Whether ``dispose`` finalizes the upload.
        """
        self._session = session
        self._max_buffer_size = max(
            round_up_to_quantum(max_buffer_size, session.chunk_size_quantum),
            session.chunk_size_quantum,
        )
        self.auto_finalize = auto_finalize
        self._buffer = bytearray()
        self._last_response: LastResponse = UploadResult()
        # Sessions restored from an upload that already finished start closed.
        if session.done:
            self._last_response = session.last_response

    @property
    def max_buffer_size(self) -> int:
        """Buffer capacity, a multiple of the chunk quantum."""
        return self._max_buffer_size

    @property
    def buffered_size(self) -> int:
        """Bytes accepted but not yet committed."""
        return len(self._buffer)

    @property
    def is_open(self) -> bool:
        """False once the upload is done or has failed."""
        return not self._session.done

    @property
    def last_response(self) -> LastResponse:
        return self._last_response

    @property
    def resumable_session_id(self) -> str:
        return self._session.session_id

    @property
    def next_expected_byte(self) -> int:
        return self._session.next_expected_byte

    def write(self, data: BytesLike) -> int:
        """Append ``data``, uploading aligned chunks once the buffer fills.

        Returns:
            The number of bytes accepted.

        Raises:
            StorageError: If the stream is closed or an upload failed.
        """
        if not self.is_open:
            raise self._closed_error()
        count = len(data)
        if len(self._buffer) + count < self._max_buffer_size:
            self._buffer += data
            return count

        buffered, self._buffer = self._buffer, bytearray()
        self._flush_round_chunk(BufferSequence.of(buffered, data))
        return count

    def flush(self) -> None:
        """Upload any complete chunks currently held in the buffer."""
        if not self.is_open:
            return
        if len(self._buffer) < self._session.chunk_size_quantum:
            return
        buffered, self._buffer = self._buffer, bytearray()
        self._flush_round_chunk(BufferSequence.of(buffered))

    def close(self) -> UploadResult:
        """Finalize the upload with whatever remains buffered.

        Returns:
            The final upload result.

        Raises:
            StorageError: If finalizing, or an earlier upload, failed.
        """
        self._flush_final()
        if isinstance(self._last_response, StorageError):
            raise self._last_response
        return self._last_response

    def dispose(self) -> None:
        """Release the buffer, finalizing only when auto-finalize is enabled."""
        if self.auto_finalize is not AutoFinalize.ENABLED:
            logger.debug(
                "Leaving upload session %s open at byte %d",
                self.resumable_session_id,
                self.next_expected_byte,
            )
            return
        self.close()

    def _closed_error(self) -> StorageError:
        if isinstance(self._last_response, StorageError):
            return self._last_response
        return StorageError(StatusCode.FAILED_PRECONDITION, "Upload stream is closed")

    def _flush_final(self) -> None:
        if not self.is_open:
            return
        payload = BufferSequence.of(self._buffer)
        upload_size = self._session.next_expected_byte + len(self._buffer)
        try:
            self._last_response = self._session.upload_final_chunk(
                payload, upload_size
            )
        except StorageError as error:
            self._fail(error)
            raise
        self._buffer = bytearray()

    def _flush_round_chunk(self, buffers: BufferSequence) -> None:
        """Upload the largest quantum-aligned prefix of ``buffers``.

        Chunks are sent in pieces no larger than the buffer capacity. Bytes the
        backend did not commit, plus the unaligned tail, stay buffered.
        """
        quantum = self._session.chunk_size_quantum
        total = buffers.total_size()
        remaining_aligned = (total // quantum) * quantum if quantum > 0 else total

        pending = buffers.copy()
        while remaining_aligned > 0 and self.is_open:
            size = min(remaining_aligned, self._max_buffer_size)
            payload = pending.prefix(size)
            first_byte = self._session.next_expected_byte
            expected_next_byte = first_byte + size
            try:
                self._last_response = self._session.upload_chunk(payload)
            except StorageError as error:
                self._buffer = bytearray(pending.tobytes())
                self._fail(error)
                raise

            actual_next_byte = self._session.next_expected_byte
            if actual_next_byte < first_byte:
                self._protocol_violation(
                    f"Could not continue upload stream. Backend requested byte "
                    f"{actual_next_byte} which has already been uploaded."
                )
            if actual_next_byte > expected_next_byte:
                self._protocol_violation(
                    "Could not continue upload stream. Backend requested "
                    f"unexpected byte. (expected: {expected_next_byte}, actual: "
                    f"{actual_next_byte})"
                )

            committed = actual_next_byte - first_byte
            pending.pop_front_bytes(committed)
            if committed < size:
                logger.info(
                    "Short write in session %s: sent %d bytes, %d committed",
                    self.resumable_session_id,
                    size,
                    committed,
                )
                break
            remaining_aligned -= size

        self._buffer = bytearray(pending.tobytes())

    def _protocol_violation(self, message: str) -> None:
        logger.error(message)
        error = StorageError(StatusCode.ABORTED, message)
        self._fail(error)
        raise error

    def _fail(self, error: StorageError) -> None:
        """Replace the session so its id and offset stay queryable."""
        self._last_response = error
        self._session = ErrorUploadSession(
            error, self._session.next_expected_byte, self._session.session_id
        )
