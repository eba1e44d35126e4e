"""Resilient resumable transfers for cloud storage."""

from .config.client_options import ClientOptions
from .exceptions import StatusCode, StorageError
from .storage_client import StorageClient
from .upload.chunked_write_buffer import AutoFinalize

__version__ = "0.1.0"

__all__ = [
    "AutoFinalize",
    "ClientOptions",
    "StatusCode",
    "StorageClient",
    "StorageError",
]
