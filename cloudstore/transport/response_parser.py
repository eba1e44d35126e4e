"""Parse resumable upload responses."""

from __future__ import annotations

import logging
import re

import requests

from cloudstore.client.models import FileMetadata
from cloudstore.transport.http_errors import RESUME_INCOMPLETE, error_from_response
from cloudstore.upload.resumable_upload_session import UploadResult, UploadState

logger = logging.getLogger(__name__)

_RANGE_PATTERN = re.compile(r"^bytes=0-(\d+)$")


def parse_upload_response(response: requests.Response, operation: str) -> UploadResult:
    """Turn a resumable upload response into an :class:`UploadResult`.

    200 and 201 mean the upload is done and carry the final metadata. 308
    means more data is expected; the ``Range`` header then holds the committed
    prefix, and a missing header means nothing was committed.

    Raises:
        StorageError: For any other status.
    """
    session_url = response.headers.get("Location", "")
    if response.status_code in (200, 201):
        metadata = None
        if response.content:
            try:
                metadata = FileMetadata.model_validate(response.json())
            except ValueError:
                logger.warning("%s returned an unparseable body", operation)
        last_committed_byte = None
        if metadata is not None and metadata.size > 0:
            last_committed_byte = metadata.size - 1
        return UploadResult(
            session_url=session_url,
            last_committed_byte=last_committed_byte,
            final_metadata=metadata,
            state=UploadState.DONE,
        )

    if response.status_code != RESUME_INCOMPLETE:
        raise error_from_response(response, operation)

    range_header = response.headers.get("Range")
    if range_header is None:
        return UploadResult(
            session_url=session_url,
            annotations="missing Range header in 308 response, nothing committed",
        )
    match = _RANGE_PATTERN.match(range_header.strip())
    if match is None:
        return UploadResult(
            session_url=session_url,
            annotations=f"cannot parse Range header {range_header!r}",
        )
    return UploadResult(
        session_url=session_url, last_committed_byte=int(match.group(1))
    )
