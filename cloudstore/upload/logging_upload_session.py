"""Session decorator tracing every call at DEBUG level."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from cloudstore.exceptions import StorageError
from cloudstore.upload.buffer_sequence import BufferSequence
from cloudstore.upload.resumable_upload_session import (
    LastResponse,
    ResumableUploadSession,
    UploadResult,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoggingUploadSession(ResumableUploadSession):
    """Log the arguments and outcome of each call on the wrapped session."""

    def __init__(self, session: ResumableUploadSession):
        self._session = session

    def _traced(self, name: str, call: Callable[[], T], *args: object) -> T:
        logger.debug("%s(%s) << %s", name, self._session.session_id, args)
        try:
            result = call()
        except StorageError as error:
            logger.debug("%s(%s) >> error %s", name, self._session.session_id, error)
            raise
        logger.debug("%s(%s) >> %r", name, self._session.session_id, result)
        return result

    def upload_chunk(self, buffers: BufferSequence) -> UploadResult:
        return self._traced(
            "upload_chunk", lambda: self._session.upload_chunk(buffers), buffers
        )

    def upload_final_chunk(
        self, buffers: BufferSequence, upload_size: int
    ) -> UploadResult:
        return self._traced(
            "upload_final_chunk",
            lambda: self._session.upload_final_chunk(buffers, upload_size),
            buffers,
            upload_size,
        )

    def reset_session(self) -> UploadResult:
        return self._traced("reset_session", self._session.reset_session)

    @property
    def next_expected_byte(self) -> int:
        return self._session.next_expected_byte

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def chunk_size_quantum(self) -> int:
        return self._session.chunk_size_quantum

    @property
    def done(self) -> bool:
        return self._session.done

    @property
    def last_response(self) -> LastResponse:
        return self._session.last_response
