"""Read source streaming the body of a ranged ``GET``."""

from __future__ import annotations

import logging

import requests

from cloudstore.download.read_source import (
    HttpResponseInfo,
    ReadSource,
    ReadSourceResult,
)
from cloudstore.exceptions import StatusCode, StorageError
from cloudstore.transport.http_errors import error_from_exception

logger = logging.getLogger(__name__)


class HttpReadSource(ReadSource):
    """Serve reads from a streamed ``requests`` response."""

    def __init__(self, response: requests.Response, chunk_size: int):
        """Initialize the source.

        Args:
            response: Response opened with ``stream=True``.
            chunk_size: Size of the pieces pulled from the connection.
        """
        self._response = response
        self._info = HttpResponseInfo(
            status_code=response.status_code, headers=dict(response.headers)
        )
        self._chunks = response.iter_content(chunk_size=chunk_size)
        self._pending = b""
        self._closed = False

    def is_open(self) -> bool:
        return not self._closed

    def close(self) -> HttpResponseInfo:
        if not self._closed:
            self._closed = True
            self._response.close()
        return self._info

    def read(self, max_bytes: int) -> ReadSourceResult:
        if self._closed:
            raise StorageError(
                StatusCode.FAILED_PRECONDITION, "Attempting to read from closed source"
            )
        if not self._pending:
            try:
                self._pending = next(self._chunks, b"")
            except requests.RequestException as exc:
                raise error_from_exception(exc, "read") from exc
            if not self._pending:
                logger.debug("Download complete, closing response")
                self.close()
                return ReadSourceResult(response=self._info)
        payload, self._pending = self._pending[:max_bytes], self._pending[max_bytes:]
        return ReadSourceResult(payload=payload, response=self._info)
