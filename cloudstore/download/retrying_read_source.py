"""Read source that reopens the download at the right offset after a failure."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING

from cloudstore.client.request_models import ReadFileRangeRequest
from cloudstore.download.read_source import (
    HttpResponseInfo,
    ReadSource,
    ReadSourceResult,
)
from cloudstore.exceptions import StorageError, exhausted_error, permanent_error
from cloudstore.policies.backoff_policy import BackoffPolicy
from cloudstore.policies.retry_policy import RetryPolicy

if TYPE_CHECKING:
    from cloudstore.client.retrying_raw_client import RetryingRawClient

logger = logging.getLogger(__name__)


class OffsetDirection(str, Enum):
    """How received bytes move the offset of a reopened request."""

    FROM_START = "from_start"
    FROM_END = "from_end"


class RetryingReadSource(ReadSource):
    """Decorates a ranged read source, recreating it after transient failures.

    For a "last N bytes" request the offset counts the bytes still missing
    from the end of the file, so a reopened request asks for fewer trailing
    bytes instead of switching to an absolute start offset.
    """

    def __init__(
        self,
        client: RetryingRawClient,
        request: ReadFileRangeRequest,
        child: ReadSource,
        retry_policy: RetryPolicy,
        backoff_policy: BackoffPolicy,
    ):
        """Initialize the decorator.

        Args:
            client: Client used to reopen the download.
            request: The request that produced ``child``.
            child: The source currently being read.
            retry_policy: Prototype cloned for every failed read.
            backoff_policy: Prototype cloned for every failed read.
        """
        self._client = client
        self._request = request
        self._child = child
        self._retry_policy_prototype = retry_policy
        self._backoff_policy_prototype = backoff_policy
        if request.read_last is not None:
            self._offset_direction = OffsetDirection.FROM_END
            self._current_offset = request.read_last
        else:
            self._offset_direction = OffsetDirection.FROM_START
            self._current_offset = request.starting_byte

    @property
    def offset_direction(self) -> OffsetDirection:
        """Whether ``current_offset`` counts from the start or the end."""
        return self._offset_direction

    @property
    def current_offset(self) -> int:
        """Offset a reopened request would start from."""
        return self._current_offset

    @property
    def request(self) -> ReadFileRangeRequest:
        """The request that would be sent if the download had to be reopened."""
        return self._resume_request()

    def is_open(self) -> bool:
        return self._child.is_open()

    def close(self) -> HttpResponseInfo:
        """Close the current child source."""
        return self._child.close()

    def read(self, max_bytes: int) -> ReadSourceResult:
        """Read from the child, reopening the download after transient failures.

        Args:
            max_bytes: Upper bound on the bytes returned.

        Returns:
            The bytes read. An empty payload marks the end of the stream.

        Raises:
            StorageError: If a failure is permanent or the retry policy runs
                out.
        """
        try:
            return self._advance(self._child.read(max_bytes))
        except StorageError as error:
            last_error = error

        retry_policy = self._retry_policy_prototype.clone()
        backoff_policy = self._backoff_policy_prototype.clone()
        while retry_policy.on_failure(last_error):
            logger.warning(
                "Download of %s failed at offset %d: %s",
                self._request.file_id,
                self._current_offset,
                last_error,
            )
            self._close_child()
            if self._range_exhausted():
                return ReadSourceResult()
            self._child = self._client.read_file_not_wrapped(
                self._resume_request(), retry_policy, backoff_policy
            )
            time.sleep(backoff_policy.on_completion())
            try:
                return self._advance(self._child.read(max_bytes))
            except StorageError as error:
                last_error = error

        if retry_policy.is_permanent_failure(last_error):
            raise permanent_error("read()", last_error) from last_error
        raise exhausted_error("read()", last_error) from last_error

    def _advance(self, result: ReadSourceResult) -> ReadSourceResult:
        if self._offset_direction is OffsetDirection.FROM_END:
            self._current_offset -= result.bytes_received
        else:
            self._current_offset += result.bytes_received
        return result

    def _close_child(self) -> None:
        try:
            self._child.close()
        except StorageError as error:
            logger.debug("Ignoring error closing failed download: %s", error)

    def _range_exhausted(self) -> bool:
        """True once every byte of a bounded request has been received."""
        if self._offset_direction is OffsetDirection.FROM_END:
            return self._current_offset <= 0
        read_range = self._request.read_range
        if read_range is None or read_range.end is None:
            return False
        return self._current_offset >= read_range.end

    def _resume_request(self) -> ReadFileRangeRequest:
        if self._offset_direction is OffsetDirection.FROM_END:
            return self._request.model_copy(
                update={"read_last": self._current_offset}
            )
        return self._request.model_copy(
            update={"read_from_offset": self._current_offset}
        )
