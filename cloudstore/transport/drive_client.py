"""Google Drive v3 client over ``requests``.

This is the transport boundary: every ``requests`` failure and unsuccessful
HTTP status is translated here into a :class:`StorageError`.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

import requests

from cloudstore.client.models import (
    FileMetadata,
    FolderItem,
    FolderMetadata,
    ListFolderResponse,
    StorageQuota,
    UserInfo,
    parse_folder_item,
)
from cloudstore.client.raw_client import RawClient
from cloudstore.client.request_models import (
    InsertFileRequest,
    ListFolderRequest,
    ReadFileRangeRequest,
    ResumableUploadRequest,
    UploadChunkRequest,
)
from cloudstore.config.client_options import ClientOptions
from cloudstore.const import CHUNK_SIZE_QUANTUM, FOLDER_MIME_TYPE, HTTP_TIMEOUT_SECONDS
from cloudstore.download.read_source import ReadSource
from cloudstore.exceptions import StatusCode, StorageError
from cloudstore.transport.http_errors import (
    RESUME_INCOMPLETE,
    error_from_exception,
    error_from_response,
)
from cloudstore.transport.http_read_source import HttpReadSource
from cloudstore.transport.http_upload_session import HttpUploadSession
from cloudstore.transport.response_parser import parse_upload_response
from cloudstore.upload.resumable_upload_session import (
    ResumableUploadSession,
    UploadResult,
)

logger = logging.getLogger(__name__)

METADATA_FIELDS = "id,name,mimeType,parents,size,createdTime,modifiedTime,md5Checksum"
QUOTA_FIELDS = "storageQuota/limit,storageQuota/usageInDrive"
USER_FIELDS = "user/displayName,user/emailAddress"

# Returned by the upload service when a resumable upload is cancelled.
UPLOAD_CANCELLED = 499


class GoogleDriveRawClient(RawClient):
    """Speak the Drive v3 REST API through an authorised ``requests.Session``."""

    def __init__(
        self,
        options: ClientOptions | None = None,
        session: requests.Session | None = None,
    ):
        """Initialize the client.

        Args:
            options: Endpoints, timeouts and the optional bearer token.
            session: Session used for every request. Pass an authorised
                session, e.g. an OAuth2 session, to manage credentials
                externally.
        """
        self.options = options or ClientOptions()
        self._session = session or requests.Session()
        if self.options.access_token:
            self._session.headers["Authorization"] = (
                f"Bearer {self.options.access_token}"
            )

    @property
    def _files_url(self) -> str:
        return f"{self.options.api_url}/files"

    @property
    def _upload_files_url(self) -> str:
        return f"{self.options.upload_url}/files"

    def _request(
        self,
        method: str,
        url: str,
        operation: str,
        allowed_statuses: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> requests.Response:
        """Send a request and translate failures.

        Args:
            method: HTTP method.
            url: Target URL.
            operation: Name of the calling operation, used in error messages.
            allowed_statuses: Non-2xx statuses the caller handles itself.
            **kwargs: Forwarded to ``requests.Session.request``.

        Returns:
            The response, whose status is 2xx or one of ``allowed_statuses``.

        Raises:
            StorageError: If no response was received or the status is an
                error.
        """
        kwargs.setdefault("timeout", HTTP_TIMEOUT_SECONDS)
        try:
            response = self._session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, operation, exc)
            raise error_from_exception(exc, operation) from exc
        logger.debug(
            "%s %s response: status=%d", method, operation, response.status_code
        )
        if response.status_code >= 300 and response.status_code not in (
            allowed_statuses
        ):
            raise error_from_response(response, operation)
        return response

    def _json(self, response: requests.Response, operation: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise StorageError(
                StatusCode.INTERNAL, f"{operation} returned invalid JSON: {exc}"
            ) from exc
        if not isinstance(payload, dict):
            raise StorageError(
                StatusCode.INTERNAL, f"{operation} returned unexpected JSON"
            )
        return payload

    def get_user_info(self) -> UserInfo:
        response = self._request(
            "GET",
            f"{self.options.api_url}/about",
            "get_user_info",
            params={"fields": USER_FIELDS},
        )
        return UserInfo.model_validate(
            self._json(response, "get_user_info").get("user", {})
        )

    def get_quota(self) -> StorageQuota:
        response = self._request(
            "GET",
            f"{self.options.api_url}/about",
            "get_quota",
            params={"fields": QUOTA_FIELDS},
        )
        return StorageQuota.model_validate(
            self._json(response, "get_quota").get("storageQuota", {})
        )

    def list_folder(self, request: ListFolderRequest) -> ListFolderResponse:
        params = {
            "q": f"('{request.folder_id}' in parents) and trashed=false",
            "fields": f"nextPageToken,files({METADATA_FIELDS})",
            "pageSize": request.page_size,
        }
        if request.page_token:
            params["pageToken"] = request.page_token
        response = self._request("GET", self._files_url, "list_folder", params=params)
        payload = self._json(response, "list_folder")
        return ListFolderResponse(
            items=[parse_folder_item(item) for item in payload.get("files", [])],
            next_page_token=payload.get("nextPageToken", ""),
        )

    def _get_metadata(self, item_id: str, operation: str) -> dict[str, Any]:
        response = self._request(
            "GET",
            f"{self._files_url}/{item_id}",
            operation,
            params={"fields": METADATA_FIELDS},
        )
        return self._json(response, operation)

    def get_folder_metadata(self, folder_id: str) -> FolderMetadata:
        payload = self._get_metadata(folder_id, "get_folder_metadata")
        if payload.get("mimeType") != FOLDER_MIME_TYPE:
            raise StorageError(
                StatusCode.INVALID_ARGUMENT, f"{folder_id} is not a folder"
            )
        return FolderMetadata.model_validate(payload)

    def get_file_metadata(self, file_id: str) -> FileMetadata:
        payload = self._get_metadata(file_id, "get_file_metadata")
        if payload.get("mimeType") == FOLDER_MIME_TYPE:
            raise StorageError(StatusCode.INVALID_ARGUMENT, f"{file_id} is a folder")
        return FileMetadata.model_validate(payload)

    def create_folder(self, parent_id: str, name: str) -> FolderMetadata:
        response = self._request(
            "POST",
            self._files_url,
            "create_folder",
            params={"fields": METADATA_FIELDS},
            json={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
        )
        return FolderMetadata.model_validate(self._json(response, "create_folder"))

    def rename(
        self,
        item_id: str,
        new_name: str,
        parent_id: str | None = None,
        new_parent_id: str | None = None,
    ) -> FolderItem:
        params = {"fields": METADATA_FIELDS}
        if new_parent_id and new_parent_id != parent_id:
            params["addParents"] = new_parent_id
            if parent_id:
                params["removeParents"] = parent_id
        response = self._request(
            "PATCH",
            f"{self._files_url}/{item_id}",
            "rename",
            params=params,
            json={"name": new_name},
        )
        return parse_folder_item(self._json(response, "rename"))

    def delete(self, item_id: str) -> None:
        self._request("DELETE", f"{self._files_url}/{item_id}", "delete")

    def copy_file(self, file_id: str, parent_id: str, name: str) -> FileMetadata:
        response = self._request(
            "POST",
            f"{self._files_url}/{file_id}/copy",
            "copy_file",
            params={"fields": METADATA_FIELDS},
            json={"name": name, "parents": [parent_id]},
        )
        return FileMetadata.model_validate(self._json(response, "copy_file"))

    def insert_file(self, request: InsertFileRequest) -> FileMetadata:
        boundary = _pick_boundary(request.content)
        metadata = {"name": request.name, "parents": [request.parent_id]}
        body = b"".join([
            f"--{boundary}\r\n".encode(),
            b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
            json.dumps(metadata).encode(),
            f"\r\n--{boundary}\r\n".encode(),
            f"Content-Type: {request.mime_type}\r\n\r\n".encode(),
            request.content,
            f"\r\n--{boundary}--\r\n".encode(),
        ])
        response = self._request(
            "POST",
            self._upload_files_url,
            "insert_file",
            params={"uploadType": "multipart", "fields": METADATA_FIELDS},
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
            data=body,
        )
        return FileMetadata.model_validate(self._json(response, "insert_file"))

    def read_file(self, request: ReadFileRangeRequest) -> ReadSource:
        headers = {}
        range_header = request.range_header()
        if range_header is not None:
            headers["Range"] = range_header
        response = self._request(
            "GET",
            f"{self._files_url}/{request.file_id}",
            "read_file",
            params={"alt": "media"},
            headers=headers,
            stream=True,
            timeout=(HTTP_TIMEOUT_SECONDS, self.options.download_stall_timeout),
        )
        return HttpReadSource(response, self.options.download_buffer_size)

    def create_resumable_session(
        self, request: ResumableUploadRequest
    ) -> ResumableUploadSession:
        headers = {"X-Upload-Content-Type": request.mime_type}
        if request.upload_size is not None:
            headers["X-Upload-Content-Length"] = str(request.upload_size)
        response = self._request(
            "POST",
            self._upload_files_url,
            "create_resumable_session",
            params={"uploadType": "resumable", "fields": METADATA_FIELDS},
            headers=headers,
            json={"name": request.name, "parents": [request.parent_id]},
        )
        session_url = response.headers.get("Location", "")
        if not session_url:
            raise StorageError(
                StatusCode.INTERNAL,
                "create_resumable_session - response carries no session URL",
            )
        logger.info("Created resumable upload session for %s", request.name)
        return HttpUploadSession(self, session_url)

    def restore_resumable_session(self, session_id: str) -> ResumableUploadSession:
        result = self.query_resumable_upload(session_id)
        logger.info(
            "Restored resumable upload session at committed byte %s",
            result.last_committed_byte,
        )
        return HttpUploadSession(self, session_id, initial_response=result)

    def delete_resumable_upload(self, session_id: str) -> None:
        self._request(
            "DELETE",
            session_id,
            "delete_resumable_upload",
            allowed_statuses=(UPLOAD_CANCELLED,),
        )

    def upload_chunk(self, request: UploadChunkRequest) -> UploadResult:
        response = self._request(
            "PUT",
            request.session_url,
            "upload_chunk",
            allowed_statuses=(RESUME_INCOMPLETE,),
            allow_redirects=False,
            headers={"Content-Range": request.content_range()},
            data=request.payload.tobytes(),
        )
        return parse_upload_response(response, "upload_chunk")

    def query_resumable_upload(self, session_id: str) -> UploadResult:
        response = self._request(
            "PUT",
            session_id,
            "query_resumable_upload",
            allowed_statuses=(RESUME_INCOMPLETE,),
            allow_redirects=False,
            headers={"Content-Range": "bytes */*"},
            data=b"",
        )
        return parse_upload_response(response, "query_resumable_upload")

    def chunk_size_quantum(self) -> int:
        return CHUNK_SIZE_QUANTUM


def _pick_boundary(content: bytes) -> str:
    """Return a multipart boundary that does not occur in ``content``."""
    while True:
        boundary = f"cloudstore-{uuid.uuid4().hex}"
        if boundary.encode() not in content:
            return boundary
