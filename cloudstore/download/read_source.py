"""Contract for ranged byte sources returned by ``read_file``."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from cloudstore.exceptions import StorageError


class HttpResponseInfo(BaseModel):
    """Status line and headers of the response backing a read."""

    status_code: int = 200
    headers: dict[str, str] = Field(default_factory=dict)


class ReadSourceResult(BaseModel):
    """Bytes returned by one ``ReadSource.read`` call.

    An empty payload marks the end of the stream.
    """

    payload: bytes = b""
    response: HttpResponseInfo = Field(default_factory=HttpResponseInfo)

    @property
    def bytes_received(self) -> int:
        return len(self.payload)


class ReadSource(ABC):
    """A forward-only source of bytes for one read request."""

    @abstractmethod
    def is_open(self) -> bool:
        ...

    @abstractmethod
    def close(self) -> HttpResponseInfo:
        """Release the underlying connection."""
        ...

    @abstractmethod
    def read(self, max_bytes: int) -> ReadSourceResult:
        """Read up to ``max_bytes`` bytes.

        Raises:
            StorageError: If the transfer failed.
        """
        ...


class ErrorReadSource(ReadSource):
    """A source that fails every read with a fixed error."""

    def __init__(self, error: StorageError):
        self._error = error

    def is_open(self) -> bool:
        return False

    def close(self) -> HttpResponseInfo:
        raise self._error

    def read(self, max_bytes: int) -> ReadSourceResult:
        raise self._error
