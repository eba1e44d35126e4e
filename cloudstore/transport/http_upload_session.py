"""Resumable upload session backed by the HTTP resumable upload protocol.

Every chunk is a ``PUT`` to the session URL carrying a ``Content-Range``
header. The server answers 308 with the committed prefix until the final
chunk, which it answers with the metadata of the new file.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cloudstore.client.request_models import UploadChunkRequest
from cloudstore.exceptions import StorageError
from cloudstore.upload.buffer_sequence import BufferSequence
from cloudstore.upload.resumable_upload_session import (
    LastResponse,
    ResumableUploadSession,
    UploadResult,
)

if TYPE_CHECKING:
    from cloudstore.client.raw_client import RawClient

logger = logging.getLogger(__name__)


class HttpUploadSession(ResumableUploadSession):
    """Track one resumable upload through the client's chunk calls."""

    def __init__(
        self,
        client: RawClient,
        session_id: str,
        initial_response: UploadResult | None = None,
    ):
        """Initialize the session.

        Args:
            client: Client issuing the chunk and query requests.
            session_id: The session URL returned when the upload was created.
            initial_response: Result of querying a restored session, used to
                pick up where the previous owner stopped.
        """
        self._client = client
        self._session_id = session_id
        self._next_expected_byte = 0
        self._done = False
        self._last_response: LastResponse = UploadResult(session_url=session_id)
        if initial_response is not None:
            self._update(initial_response, 0)

    def upload_chunk(self, buffers: BufferSequence) -> UploadResult:
        """Send a chunk starting at ``next_expected_byte``."""
        if self._done:
            return self._cached_response()
        request = UploadChunkRequest(
            session_url=self._session_id,
            first_byte=self._next_expected_byte,
            payload=buffers,
        )
        return self._send(request)

    def upload_final_chunk(
        self, buffers: BufferSequence, upload_size: int
    ) -> UploadResult:
        if self._done:
            return self._cached_response()
        if upload_size == 0:
            upload_size = self._next_expected_byte + buffers.total_size()
        request = UploadChunkRequest(
            session_url=self._session_id,
            first_byte=self._next_expected_byte,
            payload=buffers,
            upload_size=upload_size,
        )
        return self._send(request)

    def reset_session(self) -> UploadResult:
        """Ask the backend for the committed range unless the upload is done."""
        if self._done:
            return self._cached_response()
        try:
            result = self._client.query_resumable_upload(self._session_id)
        except StorageError as error:
            self._last_response = error
            raise
        self._update(result, 0)
        return result

    @property
    def next_expected_byte(self) -> int:
        return self._next_expected_byte

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def chunk_size_quantum(self) -> int:
        """Alignment required by the client for non-final chunks."""
        return self._client.chunk_size_quantum()

    @property
    def done(self) -> bool:
        return self._done

    @property
    def last_response(self) -> LastResponse:
        return self._last_response

    def _cached_response(self) -> UploadResult:
        if isinstance(self._last_response, StorageError):
            raise self._last_response
        return self._last_response

    def _send(self, request: UploadChunkRequest) -> UploadResult:
        try:
            result = self._client.upload_chunk(request)
        except StorageError as error:
            self._last_response = error
            raise
        self._update(result, request.payload.total_size())
        return result

    def _update(self, result: UploadResult, chunk_size: int) -> None:
        self._last_response = result
        self._done = result.done
        if result.done:
            if chunk_size == 0 and result.last_committed_byte is not None:
                self._next_expected_byte = result.last_committed_byte + 1
            else:
                self._next_expected_byte += chunk_size
            logger.info(
                "Upload session complete at byte %d", self._next_expected_byte
            )
        elif result.last_committed_byte is not None:
            self._next_expected_byte = result.last_committed_byte + 1
        else:
            if result.annotations:
                logger.warning("Upload session reset to byte 0: %s", result.annotations)
            self._next_expected_byte = 0
        if not self._session_id and result.session_url:
            self._session_id = result.session_url
