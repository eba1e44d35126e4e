"""Request types accepted by :class:`~cloudstore.client.raw_client.RawClient`."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator

from cloudstore.upload.buffer_sequence import BufferSequence


class ReadRange(BaseModel):
    """Half-open byte range ``[begin, end)``. ``end`` of None reads to the end."""

    begin: int = 0
    end: int | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> ReadRange:
        if self.begin < 0:
            raise ValueError("begin must be non-negative")
        if self.end is not None and self.end < self.begin:
            raise ValueError("end must not precede begin")
        return self


class ReadFileRangeRequest(BaseModel):
    """Download the content of a file, optionally restricted to a byte range.

    ``read_last`` asks for the trailing N bytes of the file and takes
    precedence over the other options.
    """

    file_id: str
    read_range: ReadRange | None = None
    read_from_offset: int = 0
    read_last: int | None = None

    @property
    def starting_byte(self) -> int:
        begin = self.read_range.begin if self.read_range is not None else 0
        return max(begin, self.read_from_offset, 0)

    @property
    def requires_range_header(self) -> bool:
        if self.read_last is not None:
            return True
        if self.read_range is not None and self.read_range.end is not None:
            return True
        return self.starting_byte != 0

    def range_header(self) -> str | None:
        """Render the HTTP ``Range`` header value, or None for a full read."""
        if self.read_last is not None:
            return f"bytes=-{self.read_last}"
        if not self.requires_range_header:
            return None
        if self.read_range is not None and self.read_range.end is not None:
            return f"bytes={self.starting_byte}-{self.read_range.end - 1}"
        return f"bytes={self.starting_byte}-"


class ListFolderRequest(BaseModel):
    """One page request of a folder listing."""

    folder_id: str
    page_size: int = 100
    page_token: str = ""


class ResumableUploadRequest(BaseModel):
    """Start a resumable upload of a new file."""

    parent_id: str
    name: str
    mime_type: str = "application/octet-stream"
    upload_size: int | None = None


class InsertFileRequest(BaseModel):
    """Upload a small file in a single request."""

    parent_id: str
    name: str
    content: bytes = b""
    mime_type: str = "application/octet-stream"


class UploadChunkRequest(BaseModel):
    """One chunk sent to an open resumable session.

    ``upload_size`` is only set on the final chunk, when the total size of the
    upload becomes known.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    session_url: str
    first_byte: int
    payload: BufferSequence
    upload_size: int | None = None

    @property
    def last_chunk(self) -> bool:
        return self.upload_size is not None

    def content_range(self) -> str:
        """Render the ``Content-Range`` header for this chunk."""
        size = self.payload.total_size()
        total = "*" if self.upload_size is None else str(self.upload_size)
        if size == 0:
            return f"bytes */{total}"
        return f"bytes {self.first_byte}-{self.first_byte + size - 1}/{total}"
