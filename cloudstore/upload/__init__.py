"""Resumable upload sessions and the write-side chunk buffer."""

from cloudstore.upload.buffer_sequence import BufferSequence
from cloudstore.upload.chunked_write_buffer import AutoFinalize, ChunkedWriteBuffer
from cloudstore.upload.logging_upload_session import LoggingUploadSession
from cloudstore.upload.resumable_upload_session import (
    ErrorUploadSession,
    ResumableUploadSession,
    UploadResult,
    UploadState,
)
from cloudstore.upload.retrying_upload_session import RetryingUploadSession

__all__ = [
    "AutoFinalize",
    "BufferSequence",
    "ChunkedWriteBuffer",
    "ErrorUploadSession",
    "LoggingUploadSession",
    "ResumableUploadSession",
    "RetryingUploadSession",
    "UploadResult",
    "UploadState",
]
