import os

API_URL = os.getenv("CLOUDSTORE_API_URL", "https://www.googleapis.com/drive/v3")
UPLOAD_URL = os.getenv(
    "CLOUDSTORE_UPLOAD_URL", "https://www.googleapis.com/upload/drive/v3"
)
ENABLE_TRACING = os.getenv("CLOUDSTORE_ENABLE_TRACING", "False").lower() == "true"

# Chunks must be multiples of 256 KiB
CHUNK_SIZE_QUANTUM = 256 * 1024
BYTES_PER_MIB = 1024 * 1024

DEFAULT_UPLOAD_BUFFER_SIZE = 8 * BYTES_PER_MIB
DEFAULT_DOWNLOAD_BUFFER_SIZE = 3 * BYTES_PER_MIB // 2
DEFAULT_MAXIMUM_SIMPLE_UPLOAD_SIZE = 20 * BYTES_PER_MIB
DEFAULT_DOWNLOAD_STALL_TIMEOUT_SECONDS = 120
DEFAULT_MAXIMUM_RETRY_PERIOD_SECONDS = 15 * 60
DEFAULT_INITIAL_BACKOFF_DELAY_SECONDS = 1.0
DEFAULT_MAXIMUM_BACKOFF_DELAY_SECONDS = 5 * 60.0
DEFAULT_BACKOFF_SCALING = 2.0

HTTP_TIMEOUT_SECONDS = 60

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
ROOT_FOLDER_ID = "root"

CONFIG_DIR_NAME = ".cloudstore"
