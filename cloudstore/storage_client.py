"""High level storage client.

Builds the client decorator chain from :class:`ClientOptions` and exposes
file-like streams, whole-file transfers and metadata operations on top of it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import requests

from cloudstore.client.logging_raw_client import LoggingRawClient
from cloudstore.client.models import (
    FileMetadata,
    FolderItem,
    FolderMetadata,
    ListFolderResponse,
    StorageQuota,
    UserInfo,
)
from cloudstore.client.pagination import PaginatedSequence, list_folder_items
from cloudstore.client.raw_client import RawClient
from cloudstore.client.request_models import (
    InsertFileRequest,
    ListFolderRequest,
    ReadFileRangeRequest,
    ReadRange,
    ResumableUploadRequest,
)
from cloudstore.client.retrying_raw_client import RetryingRawClient
from cloudstore.config.client_options import ClientOptions
from cloudstore.const import ROOT_FOLDER_ID
from cloudstore.streams import FileReadStream, FileWriteStream
from cloudstore.transport.drive_client import GoogleDriveRawClient
from cloudstore.upload.chunked_write_buffer import AutoFinalize, ChunkedWriteBuffer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class StorageClient:
    """Entry point for applications using the storage service."""

    def __init__(
        self,
        options: ClientOptions | None = None,
        session: requests.Session | None = None,
        raw_client: RawClient | None = None,
    ):
        """Initialize the client.

        Args:
            options: Client options. Defaults are used when omitted.
            session: Authorised ``requests`` session for the default transport.
            raw_client: Transport client replacing the default Google Drive
                client. It is still wrapped with the retry layer.
        """
        self.options = options or ClientOptions()
        client = raw_client or GoogleDriveRawClient(self.options, session)
        if self.options.enable_tracing:
            client = LoggingRawClient(client)
        self._client = RetryingRawClient(
            client, self.options.retry_policy(), self.options.backoff_policy()
        )

    @property
    def raw_client(self) -> RawClient:
        return self._client

    def get_user_info(self) -> UserInfo:
        return self._client.get_user_info()

    def get_quota(self) -> StorageQuota:
        return self._client.get_quota()

    def list_folder(
        self, folder_id: str = ROOT_FOLDER_ID, page_size: int = 100
    ) -> PaginatedSequence[ListFolderRequest, ListFolderResponse, FolderItem]:
        """Iterate lazily over the items of a folder."""
        return list_folder_items(self._client, folder_id, page_size)

    def get_folder_metadata(self, folder_id: str) -> FolderMetadata:
        return self._client.get_folder_metadata(folder_id)

    def create_folder(self, parent_id: str, name: str) -> FolderMetadata:
        return self._client.create_folder(parent_id, name)

    def rename(
        self,
        item_id: str,
        new_name: str,
        parent_id: str | None = None,
        new_parent_id: str | None = None,
    ) -> FolderItem:
        return self._client.rename(item_id, new_name, parent_id, new_parent_id)

    def get_file_metadata(self, file_id: str) -> FileMetadata:
        return self._client.get_file_metadata(file_id)

    def delete(self, item_id: str) -> None:
        self._client.delete(item_id)

    def copy_file(self, file_id: str, parent_id: str, name: str) -> FileMetadata:
        return self._client.copy_file(file_id, parent_id, name)

    def delete_resumable_upload(self, session_id: str) -> None:
        self._client.delete_resumable_upload(session_id)

    def write_file(
        self,
        parent_id: str,
        name: str,
        session_id: str | None = None,
        upload_size: int | None = None,
        mime_type: str = "application/octet-stream",
        auto_finalize: AutoFinalize = AutoFinalize.ENABLED,
    ) -> FileWriteStream:
        """Open a stream uploading a new file.

        Args:
            parent_id: Folder receiving the file.
            name: Name of the new file.
            session_id: Session of an interrupted upload to resume instead of
                starting a new one.
            upload_size: Total size of the file, if known.
            mime_type: Content type of the file.
            auto_finalize: Whether leaving a ``with`` block finalizes the
                upload.

        Returns:
            The upload stream. When resuming, write starting at its
            ``next_expected_byte``.
        """
        if session_id:
            session = self._client.restore_resumable_session(session_id)
        else:
            session = self._client.create_resumable_session(
                ResumableUploadRequest(
                    parent_id=parent_id,
                    name=name,
                    mime_type=mime_type,
                    upload_size=upload_size,
                )
            )
        buffer = ChunkedWriteBuffer(
            session, self.options.upload_buffer_size, auto_finalize
        )
        return FileWriteStream(buffer)

    def upload_file(
        self,
        path: str | Path,
        parent_id: str = ROOT_FOLDER_ID,
        name: str | None = None,
        session_id: str | None = None,
        finalize: bool = True,
        on_progress: ProgressCallback | None = None,
    ) -> FileWriteStream | FileMetadata:
        """Upload a local file.

        Files no larger than ``maximum_simple_upload_size`` are sent in one
        request unless a session is being resumed or finalizing is disabled.

        Args:
            path: Local file to upload.
            parent_id: Folder receiving the file.
            name: Remote name. Defaults to the local file name.
            session_id: Session of an interrupted upload to resume.
            finalize: When False the upload is suspended after the last byte
                and the stream is returned so its session can be resumed.
            on_progress: Called with the number of bytes sent by each write.

        Returns:
            The metadata of the uploaded file, or the suspended stream when
            ``finalize`` is False.
        """
        path = Path(path)
        name = name or path.name
        size = path.stat().st_size

        simple = finalize and not session_id
        if simple and size <= self.options.maximum_simple_upload_size:
            metadata = self._client.insert_file(
                InsertFileRequest(
                    parent_id=parent_id, name=name, content=path.read_bytes()
                )
            )
            if on_progress is not None:
                on_progress(size)
            return metadata

        stream = self.write_file(
            parent_id,
            name,
            session_id=session_id,
            upload_size=size,
            auto_finalize=AutoFinalize.ENABLED if finalize else AutoFinalize.DISABLED,
        )
        with path.open("rb") as source:
            offset = stream.next_expected_byte
            if offset:
                logger.info("Resuming upload of %s at byte %d", path, offset)
                source.seek(offset)
                if on_progress is not None:
                    on_progress(offset)
            with stream:
                while stream.is_open:
                    chunk = source.read(self.options.upload_buffer_size)
                    if not chunk:
                        break
                    stream.write(chunk)
                    if on_progress is not None:
                        on_progress(len(chunk))
        if not finalize:
            return stream
        metadata = stream.metadata
        if metadata is None:
            metadata = FileMetadata(name=name, parent_id=parent_id, size=size)
        return metadata

    def read_file(
        self,
        file_id: str,
        read_range: ReadRange | None = None,
        read_from_offset: int = 0,
        read_last: int | None = None,
    ) -> FileReadStream:
        """Open a stream reading the content of a file."""
        source = self._client.read_file(
            ReadFileRangeRequest(
                file_id=file_id,
                read_range=read_range,
                read_from_offset=read_from_offset,
                read_last=read_last,
            )
        )
        return FileReadStream(source, self.options.download_buffer_size)

    def download_file(
        self,
        file_id: str,
        path: str | Path,
        on_progress: ProgressCallback | None = None,
    ) -> int:
        """Download a file to a local path.

        Returns:
            The number of bytes written.
        """
        written = 0
        with self.read_file(file_id) as stream, Path(path).open("wb") as target:
            while True:
                chunk = stream.read(self.options.download_buffer_size)
                if not chunk:
                    break
                target.write(chunk)
                written += len(chunk)
                if on_progress is not None:
                    on_progress(len(chunk))
        logger.info("Downloaded %d bytes of %s to %s", written, file_id, path)
        return written
