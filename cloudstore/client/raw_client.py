"""The remote-call contract shared by every client layer.

Transport clients implement it, and the logging and retrying decorators wrap
any implementation of it, so they compose freely.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from cloudstore.client.models import (
    FileMetadata,
    FolderItem,
    FolderMetadata,
    ListFolderResponse,
    StorageQuota,
    UserInfo,
)
from cloudstore.client.request_models import (
    InsertFileRequest,
    ListFolderRequest,
    ReadFileRangeRequest,
    ResumableUploadRequest,
    UploadChunkRequest,
)
from cloudstore.download.read_source import ReadSource
from cloudstore.upload.resumable_upload_session import (
    ResumableUploadSession,
    UploadResult,
)


class RawClient(ABC):
    """Every remote operation of a storage provider.

    Each method raises :class:`~cloudstore.exceptions.StorageError` on failure.
    """

    @abstractmethod
    def get_user_info(self) -> UserInfo:
        ...

    @abstractmethod
    def get_quota(self) -> StorageQuota:
        ...

    @abstractmethod
    def list_folder(self, request: ListFolderRequest) -> ListFolderResponse:
        ...

    @abstractmethod
    def get_folder_metadata(self, folder_id: str) -> FolderMetadata:
        ...

    @abstractmethod
    def create_folder(self, parent_id: str, name: str) -> FolderMetadata:
        ...

    @abstractmethod
    def rename(
        self,
        item_id: str,
        new_name: str,
        parent_id: str | None = None,
        new_parent_id: str | None = None,
    ) -> FolderItem:
        """Rename an item.

        When ``new_parent_id`` is given the item also moves from ``parent_id``
        to ``new_parent_id``.
        """
        ...

    @abstractmethod
    def get_file_metadata(self, file_id: str) -> FileMetadata:
        ...

    @abstractmethod
    def delete(self, item_id: str) -> None:
        ...

    @abstractmethod
    def copy_file(self, file_id: str, parent_id: str, name: str) -> FileMetadata:
        ...

    @abstractmethod
    def insert_file(self, request: InsertFileRequest) -> FileMetadata:
        ...

    @abstractmethod
    def read_file(self, request: ReadFileRangeRequest) -> ReadSource:
        ...

    @abstractmethod
    def create_resumable_session(
        self, request: ResumableUploadRequest
    ) -> ResumableUploadSession:
        ...

    @abstractmethod
    def restore_resumable_session(self, session_id: str) -> ResumableUploadSession:
        """Reattach to an upload started earlier, possibly by another process."""
        ...

    @abstractmethod
    def delete_resumable_upload(self, session_id: str) -> None:
        ...

    @abstractmethod
    def upload_chunk(self, request: UploadChunkRequest) -> UploadResult:
        ...

    @abstractmethod
    def query_resumable_upload(self, session_id: str) -> UploadResult:
        ...

    @abstractmethod
    def chunk_size_quantum(self) -> int:
        ...
