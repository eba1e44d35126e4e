"""Client decorator applying the retry and backoff policies to every call."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from cloudstore.client.models import (
    FileMetadata,
    FolderItem,
    FolderMetadata,
    ListFolderResponse,
    StorageQuota,
    UserInfo,
)
from cloudstore.client.raw_client import RawClient
from cloudstore.client.request_models import (
    InsertFileRequest,
    ListFolderRequest,
    ReadFileRangeRequest,
    ResumableUploadRequest,
    UploadChunkRequest,
)
from cloudstore.download.read_source import ReadSource
from cloudstore.download.retrying_read_source import RetryingReadSource
from cloudstore.exceptions import (
    StorageError,
    exhausted_before_first_attempt,
    exhausted_error,
    permanent_error,
)
from cloudstore.policies.backoff_policy import BackoffPolicy
from cloudstore.policies.retry_policy import RetryPolicy
from cloudstore.upload.resumable_upload_session import (
    ResumableUploadSession,
    UploadResult,
)
from cloudstore.upload.retrying_upload_session import RetryingUploadSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


def make_call(
    retry_policy: RetryPolicy,
    backoff_policy: BackoffPolicy,
    call: Callable[[], T],
    operation: str,
) -> T:
    """Invoke ``call`` until it succeeds, fails permanently or the policy expires.

    Args:
        retry_policy: Policy deciding whether a failure may be retried.
        backoff_policy: Policy computing the delay between attempts.
        call: The remote call.
        operation: Name used to prefix the final error message.

    Returns:
        The value returned by the first successful attempt.

    Raises:
        StorageError: Annotated with whether the failure was permanent or the
            retry policy ran out.
    """
    last_error: StorageError | None = None
    while not retry_policy.is_exhausted():
        try:
            return call()
        except StorageError as error:
            last_error = error
            if retry_policy.is_permanent_failure(error):
                logger.error("Permanent error in %s: %s", operation, error)
                raise permanent_error(operation, error) from error
            if not retry_policy.on_failure(error):
                break
        delay = backoff_policy.on_completion()
        logger.warning(
            "%s failed, retrying in %.2fs: %s", operation, delay, last_error
        )
        time.sleep(delay)

    if last_error is None:
        raise exhausted_before_first_attempt()
    logger.error("Retry policy exhausted in %s: %s", operation, last_error)
    raise exhausted_error(operation, last_error) from last_error


class RetryingRawClient(RawClient):
    """Retry every remote call of the wrapped client.

    Upload sessions and read sources it returns are wrapped as well, so their
    recovery calls go through the same machinery.
    """

    def __init__(
        self,
        client: RawClient,
        retry_policy: RetryPolicy,
        backoff_policy: BackoffPolicy,
    ):
        """Initialize the decorator.

        Args:
            client: The client performing the remote calls.
            retry_policy: Prototype cloned once per call.
            backoff_policy: Prototype cloned once per call.
        """
        self._client = client
        self._retry_policy_prototype = retry_policy
        self._backoff_policy_prototype = backoff_policy

    @property
    def client(self) -> RawClient:
        return self._client

    def _call(self, call: Callable[[], T], operation: str) -> T:
        return make_call(
            self._retry_policy_prototype.clone(),
            self._backoff_policy_prototype.clone(),
            call,
            operation,
        )

    def get_user_info(self) -> UserInfo:
        return self._call(self._client.get_user_info, "get_user_info")

    def get_quota(self) -> StorageQuota:
        return self._call(self._client.get_quota, "get_quota")

    def list_folder(self, request: ListFolderRequest) -> ListFolderResponse:
        return self._call(lambda: self._client.list_folder(request), "list_folder")

    def get_folder_metadata(self, folder_id: str) -> FolderMetadata:
        return self._call(
            lambda: self._client.get_folder_metadata(folder_id),
            "get_folder_metadata",
        )

    def create_folder(self, parent_id: str, name: str) -> FolderMetadata:
        return self._call(
            lambda: self._client.create_folder(parent_id, name), "create_folder"
        )

    def rename(
        self,
        item_id: str,
        new_name: str,
        parent_id: str | None = None,
        new_parent_id: str | None = None,
    ) -> FolderItem:
        return self._call(
            lambda: self._client.rename(item_id, new_name, parent_id, new_parent_id),
            "rename",
        )

    def get_file_metadata(self, file_id: str) -> FileMetadata:
        return self._call(
            lambda: self._client.get_file_metadata(file_id), "get_file_metadata"
        )

    def delete(self, item_id: str) -> None:
        self._call(lambda: self._client.delete(item_id), "delete")

    def copy_file(self, file_id: str, parent_id: str, name: str) -> FileMetadata:
        return self._call(
            lambda: self._client.copy_file(file_id, parent_id, name), "copy_file"
        )

    def insert_file(self, request: InsertFileRequest) -> FileMetadata:
        return self._call(lambda: self._client.insert_file(request), "insert_file")

    def read_file(self, request: ReadFileRangeRequest) -> ReadSource:
        retry_policy = self._retry_policy_prototype.clone()
        backoff_policy = self._backoff_policy_prototype.clone()
        child = self.read_file_not_wrapped(request, retry_policy, backoff_policy)
        return RetryingReadSource(
            self, request, child, retry_policy, backoff_policy
        )

    def read_file_not_wrapped(
        self,
        request: ReadFileRangeRequest,
        retry_policy: RetryPolicy,
        backoff_policy: BackoffPolicy,
    ) -> ReadSource:
        """Open a plain read source using the caller's policy instances."""
        return make_call(
            retry_policy,
            backoff_policy,
            lambda: self._client.read_file(request),
            "read_file",
        )

    def create_resumable_session(
        self, request: ResumableUploadRequest
    ) -> ResumableUploadSession:
        retry_policy = self._retry_policy_prototype.clone()
        backoff_policy = self._backoff_policy_prototype.clone()
        session = make_call(
            retry_policy,
            backoff_policy,
            lambda: self._client.create_resumable_session(request),
            "create_resumable_session",
        )
        return RetryingUploadSession(session, retry_policy, backoff_policy)

    def restore_resumable_session(self, session_id: str) -> ResumableUploadSession:
        retry_policy = self._retry_policy_prototype.clone()
        backoff_policy = self._backoff_policy_prototype.clone()
        session = make_call(
            retry_policy,
            backoff_policy,
            lambda: self._client.restore_resumable_session(session_id),
            "restore_resumable_session",
        )
        return RetryingUploadSession(session, retry_policy, backoff_policy)

    def delete_resumable_upload(self, session_id: str) -> None:
        self._call(
            lambda: self._client.delete_resumable_upload(session_id),
            "delete_resumable_upload",
        )

    def upload_chunk(self, request: UploadChunkRequest) -> UploadResult:
        return self._call(lambda: self._client.upload_chunk(request), "upload_chunk")

    def query_resumable_upload(self, session_id: str) -> UploadResult:
        return self._call(
            lambda: self._client.query_resumable_upload(session_id),
            "query_resumable_upload",
        )

    def chunk_size_quantum(self) -> int:
        return self._client.chunk_size_quantum()
