"""Resumable upload session that retries transient failures.

A single retry policy and a single backoff policy are cloned for each
``upload_chunk``/``upload_final_chunk`` call and shared with every
``reset_session`` that call triggers, so chunk uploads and resets draw from
one exhaustion budget.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from cloudstore.exceptions import (
    StatusCode,
    StorageError,
    exhausted_before_first_attempt,
    exhausted_error,
    permanent_error,
)
from cloudstore.policies.backoff_policy import BackoffPolicy
from cloudstore.policies.retry_policy import RetryPolicy
from cloudstore.upload.buffer_sequence import BufferSequence
from cloudstore.upload.resumable_upload_session import (
    LastResponse,
    ResumableUploadSession,
    UploadResult,
)

logger = logging.getLogger(__name__)

UploadCall = Callable[[BufferSequence], UploadResult]


class RetryingUploadSession(ResumableUploadSession):
    """Decorates a session, retrying uploads and resynchronizing on failure."""

    def __init__(
        self,
        session: ResumableUploadSession,
        retry_policy: RetryPolicy,
        backoff_policy: BackoffPolicy,
    ):
        """Initialize the decorator.

        Args:
            session: The session performing the actual uploads.
            retry_policy: Prototype cloned for every operation.
            backoff_policy: Prototype cloned for every operation.
        """
        self._session = session
        self._retry_policy_prototype = retry_policy
        self._backoff_policy_prototype = backoff_policy

    def upload_chunk(self, buffers: BufferSequence) -> UploadResult:
        return self._upload_generic(
            buffers, self._session.upload_chunk, "upload_chunk"
        )

    def upload_final_chunk(
        self, buffers: BufferSequence, upload_size: int
    ) -> UploadResult:
        def upload(pending: BufferSequence) -> UploadResult:
            return self._session.upload_final_chunk(pending, upload_size)

        return self._upload_generic(buffers, upload, "upload_final_chunk")

    def reset_session(self) -> UploadResult:
        return self._reset_session(
            self._retry_policy_prototype.clone(),
            self._backoff_policy_prototype.clone(),
            "reset_session",
        )

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

    def _reset_session(
        self, retry_policy: RetryPolicy, backoff_policy: BackoffPolicy, caller: str
    ) -> UploadResult:
        """Query the committed range, retrying against the given policies.

        Raises:
            StorageError: If the policy gives up, with a message naming
                ``caller``.
        """
        last_error: StorageError | None = None
        while not retry_policy.is_exhausted():
            try:
                return self._session.reset_session()
            except StorageError as error:
                last_error = error
                if not retry_policy.on_failure(error):
                    break
            delay = backoff_policy.on_completion()
            logger.warning(
                "reset_session failed in %s, retrying in %.2fs: %s",
                caller,
                delay,
                last_error,
            )
            time.sleep(delay)

        if last_error is None:
            raise exhausted_before_first_attempt()
        if retry_policy.is_permanent_failure(last_error):
            raise permanent_error(caller, last_error) from last_error
        raise exhausted_error(caller, last_error) from last_error

    def _upload_generic(
        self, buffers: BufferSequence, upload: UploadCall, caller: str
    ) -> UploadResult:
        retry_policy = self._retry_policy_prototype.clone()
        backoff_policy = self._backoff_policy_prototype.clone()

        pending = buffers.copy()
        next_byte = self._session.next_expected_byte
        last_error: StorageError | None = None
        while not retry_policy.is_exhausted():
            new_next_byte = self._session.next_expected_byte
            if new_next_byte < next_byte:
                message = (
                    f"Backend moved the next expected byte backwards in {caller}: "
                    f"from {next_byte} to {new_next_byte}"
                )
                logger.error(message)
                raise StorageError(StatusCode.INTERNAL, message)
            if new_next_byte > next_byte:
                pending.pop_front_bytes(new_next_byte - next_byte)
                next_byte = new_next_byte

            expected_bytes = pending.total_size()
            try:
                result = upload(pending)
            except StorageError as error:
                last_error = error
                if not retry_policy.on_failure(error):
                    break
                delay = backoff_policy.on_completion()
                logger.warning(
                    "%s failed at byte %d, retrying in %.2fs: %s",
                    caller,
                    next_byte,
                    delay,
                    error,
                )
                time.sleep(delay)
                self._reset_session(retry_policy, backoff_policy, caller)
                continue

            if result.done:
                return result
            actual_bytes = self._session.next_expected_byte - next_byte
            if actual_bytes == expected_bytes:
                return result
            if actual_bytes > expected_bytes:
                message = (
                    f"Backend committed more bytes than were sent in {caller}: "
                    f"sent {expected_bytes}, committed {actual_bytes}"
                )
                logger.error(message)
                raise StorageError(StatusCode.INTERNAL, message)

            # Short write, resend the remainder without consuming the budget.
            last_error = StorageError(
                StatusCode.UNAVAILABLE,
                f"Short write in {caller}: previous next_byte={next_byte}, "
                f"current next_byte={self._session.next_expected_byte}, "
                f"sent {expected_bytes} bytes",
            )
            logger.info("%s", last_error.message)

        if last_error is None:
            raise exhausted_before_first_attempt()
        if retry_policy.is_permanent_failure(last_error):
            logger.error("Permanent error in %s: %s", caller, last_error)
            raise permanent_error(caller, last_error) from last_error
        logger.error("Retry policy exhausted in %s: %s", caller, last_error)
        raise exhausted_error(caller, last_error) from last_error
