"""Contract for a single resumable upload session.

A session moves from ``IN_PROGRESS`` to ``DONE`` as chunks are committed.
``DONE`` is terminal: the transport resource is released and further calls
return the cached last result.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Union

from pydantic import BaseModel

from cloudstore.client.models import FileMetadata
from cloudstore.exceptions import StorageError
from cloudstore.upload.buffer_sequence import BufferSequence


class UploadState(str, Enum):
    """Progress of a resumable upload."""

    IN_PROGRESS = "in_progress"
    DONE = "done"


class UploadResult(BaseModel):
    """Outcome of one session operation.

    ``last_committed_byte`` is None when the backend reports that nothing has
    been committed yet. ``final_metadata`` is only set once the upload is done.
    """

    session_url: str = ""
    last_committed_byte: int | None = None
    final_metadata: FileMetadata | None = None
    state: UploadState = UploadState.IN_PROGRESS
    annotations: str = ""

    @property
    def done(self) -> bool:
        return self.state is UploadState.DONE


LastResponse = Union[UploadResult, StorageError]


class ResumableUploadSession(ABC):
    """Interface for a resumable upload session."""

    @abstractmethod
    def upload_chunk(self, buffers: BufferSequence) -> UploadResult:
        """Upload a chunk whose size is a multiple of the chunk quantum.

        Raises:
            StorageError: If the chunk could not be uploaded.
        """
        ...

    @abstractmethod
    def upload_final_chunk(
        self, buffers: BufferSequence, upload_size: int
    ) -> UploadResult:
        """Upload the remaining bytes and finalize the upload.

        Args:
            buffers: The trailing payload, possibly empty.
            upload_size: Total object size if known, else 0.

        Raises:
            StorageError: If the chunk could not be uploaded.
        """
        ...

    @abstractmethod
    def reset_session(self) -> UploadResult:
        """Query the backend for the committed range and resynchronize."""
        ...

    @property
    @abstractmethod
    def next_expected_byte(self) -> int:
        """Offset of the next byte the backend expects."""
        ...

    @property
    @abstractmethod
    def session_id(self) -> str:
        """Provider-assigned session id, which may change during an upload."""
        ...

    @property
    @abstractmethod
    def chunk_size_quantum(self) -> int:
        """Alignment required for every chunk except the last one."""
        ...

    @property
    @abstractmethod
    def done(self) -> bool:
        """True once the upload has completed."""
        ...

    @property
    @abstractmethod
    def last_response(self) -> LastResponse:
        """The last result or error seen by the session."""
        ...


class ErrorUploadSession(ResumableUploadSession):
    """A session that always fails with a fixed error.

    It replaces a live session once an unrecoverable error is detected, so
    callers can still read ``session_id`` and ``next_expected_byte`` without
    checking for None.
    """

    def __init__(
        self, error: StorageError, next_expected_byte: int = 0, session_id: str = ""
    ):
        self._error = error
        self._next_expected_byte = next_expected_byte
        self._session_id = session_id

    def upload_chunk(self, buffers: BufferSequence) -> UploadResult:
        raise self._error

    def upload_final_chunk(
        self, buffers: BufferSequence, upload_size: int
    ) -> UploadResult:
        raise self._error

    def reset_session(self) -> UploadResult:
        raise self._error

    @property
    def next_expected_byte(self) -> int:
        return self._next_expected_byte

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def chunk_size_quantum(self) -> int:
        return 0

    @property
    def done(self) -> bool:
        return True

    @property
    def last_response(self) -> LastResponse:
        return self._error
