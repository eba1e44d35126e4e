"""Client decorator tracing every call at DEBUG level."""

from __future__ import annotations

import logging
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
from cloudstore.exceptions import StorageError
from cloudstore.upload.logging_upload_session import LoggingUploadSession
from cloudstore.upload.resumable_upload_session import (
    ResumableUploadSession,
    UploadResult,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _traced(name: str, call: Callable[[], T], *args: object) -> T:
    logger.debug("%s() << %s", name, args)
    try:
        result = call()
    except StorageError as error:
        logger.debug("%s() >> error %s", name, error)
        raise
    logger.debug("%s() >> %r", name, result)
    return result


class LoggingRawClient(RawClient):
    """Log the request and the response or error of each call."""

    def __init__(self, client: RawClient):
        self._client = client

    def get_user_info(self) -> UserInfo:
        return _traced("get_user_info", self._client.get_user_info)

    def get_quota(self) -> StorageQuota:
        return _traced("get_quota", self._client.get_quota)

    def list_folder(self, request: ListFolderRequest) -> ListFolderResponse:
        return _traced(
            "list_folder", lambda: self._client.list_folder(request), request
        )

    def get_folder_metadata(self, folder_id: str) -> FolderMetadata:
        return _traced(
            "get_folder_metadata",
            lambda: self._client.get_folder_metadata(folder_id),
            folder_id,
        )

    def create_folder(self, parent_id: str, name: str) -> FolderMetadata:
        return _traced(
            "create_folder",
            lambda: self._client.create_folder(parent_id, name),
            parent_id,
            name,
        )

    def rename(
        self,
        item_id: str,
        new_name: str,
        parent_id: str | None = None,
        new_parent_id: str | None = None,
    ) -> FolderItem:
        return _traced(
            "rename",
            lambda: self._client.rename(item_id, new_name, parent_id, new_parent_id),
            item_id,
            new_name,
            parent_id,
            new_parent_id,
        )

    def get_file_metadata(self, file_id: str) -> FileMetadata:
        return _traced(
            "get_file_metadata",
            lambda: self._client.get_file_metadata(file_id),
            file_id,
        )

    def delete(self, item_id: str) -> None:
        _traced("delete", lambda: self._client.delete(item_id), item_id)

    def copy_file(self, file_id: str, parent_id: str, name: str) -> FileMetadata:
        return _traced(
            "copy_file",
            lambda: self._client.copy_file(file_id, parent_id, name),
            file_id,
            parent_id,
            name,
        )

    def insert_file(self, request: InsertFileRequest) -> FileMetadata:
        # Only log the size of the content.
        return _traced(
            "insert_file",
            lambda: self._client.insert_file(request),
            request.parent_id,
            request.name,
            len(request.content),
        )

    def read_file(self, request: ReadFileRangeRequest) -> ReadSource:
        return _traced("read_file", lambda: self._client.read_file(request), request)

    def create_resumable_session(
        self, request: ResumableUploadRequest
    ) -> ResumableUploadSession:
        session = _traced(
            "create_resumable_session",
            lambda: self._client.create_resumable_session(request),
            request,
        )
        return LoggingUploadSession(session)

    def restore_resumable_session(self, session_id: str) -> ResumableUploadSession:
        session = _traced(
            "restore_resumable_session",
            lambda: self._client.restore_resumable_session(session_id),
            session_id,
        )
        return LoggingUploadSession(session)

    def delete_resumable_upload(self, session_id: str) -> None:
        _traced(
            "delete_resumable_upload",
            lambda: self._client.delete_resumable_upload(session_id),
            session_id,
        )

    def upload_chunk(self, request: UploadChunkRequest) -> UploadResult:
        return _traced(
            "upload_chunk",
            lambda: self._client.upload_chunk(request),
            request.session_url,
            request.content_range(),
        )

    def query_resumable_upload(self, session_id: str) -> UploadResult:
        return _traced(
            "query_resumable_upload",
            lambda: self._client.query_resumable_upload(session_id),
            session_id,
        )

    def chunk_size_quantum(self) -> int:
        return self._client.chunk_size_quantum()
