"""Options shared by every layer of the storage client."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from cloudstore.config.helpers import parse_bytes
from cloudstore.const import (
    API_URL,
    DEFAULT_BACKOFF_SCALING,
    DEFAULT_DOWNLOAD_BUFFER_SIZE,
    DEFAULT_DOWNLOAD_STALL_TIMEOUT_SECONDS,
    DEFAULT_INITIAL_BACKOFF_DELAY_SECONDS,
    DEFAULT_MAXIMUM_BACKOFF_DELAY_SECONDS,
    DEFAULT_MAXIMUM_RETRY_PERIOD_SECONDS,
    DEFAULT_MAXIMUM_SIMPLE_UPLOAD_SIZE,
    DEFAULT_UPLOAD_BUFFER_SIZE,
    ENABLE_TRACING,
    UPLOAD_URL,
)
from cloudstore.policies.backoff_policy import BackoffPolicy, ExponentialBackoffPolicy
from cloudstore.policies.retry_policy import (
    LimitedErrorCountRetryPolicy,
    LimitedTimeRetryPolicy,
    RetryPolicy,
)


class ClientOptions(BaseModel):
    """Configuration for a storage client.

    Sizes are in bytes and accept unit suffixes such as ``"8mb"``. Durations
    are in seconds.
    """

    upload_buffer_size: int = DEFAULT_UPLOAD_BUFFER_SIZE
    download_buffer_size: int = DEFAULT_DOWNLOAD_BUFFER_SIZE
    maximum_simple_upload_size: int = DEFAULT_MAXIMUM_SIMPLE_UPLOAD_SIZE
    download_stall_timeout: float = DEFAULT_DOWNLOAD_STALL_TIMEOUT_SECONDS
    maximum_retry_period: float = DEFAULT_MAXIMUM_RETRY_PERIOD_SECONDS
    maximum_retry_count: int | None = None
    initial_backoff_delay: float = DEFAULT_INITIAL_BACKOFF_DELAY_SECONDS
    maximum_backoff_delay: float = DEFAULT_MAXIMUM_BACKOFF_DELAY_SECONDS
    backoff_scaling: float = DEFAULT_BACKOFF_SCALING
    enable_tracing: bool = ENABLE_TRACING
    api_url: str = API_URL
    upload_url: str = UPLOAD_URL
    access_token: str | None = None

    @field_validator(
        "upload_buffer_size",
        "download_buffer_size",
        "maximum_simple_upload_size",
        mode="before",
    )
    @classmethod
    def _parse_size(cls, value: int | str) -> int:
        size = parse_bytes(value)
        if size <= 0:
            raise ValueError("size must be positive")
        return size

    @field_validator("backoff_scaling")
    @classmethod
    def _check_scaling(cls, value: float) -> float:
        if value <= 1.0:
            raise ValueError("backoff_scaling must be greater than 1.0")
        return value

    def retry_policy(self) -> RetryPolicy:
        """Build the retry policy prototype described by these options."""
        if self.maximum_retry_count is not None:
            return LimitedErrorCountRetryPolicy(self.maximum_retry_count)
        return LimitedTimeRetryPolicy(self.maximum_retry_period)

    def backoff_policy(self) -> BackoffPolicy:
        """Build the backoff policy prototype described by these options."""
        return ExponentialBackoffPolicy(
            self.initial_backoff_delay,
            self.maximum_backoff_delay,
            self.backoff_scaling,
        )
