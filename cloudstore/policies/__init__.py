"""Retry and backoff policies."""

from cloudstore.policies.backoff_policy import BackoffPolicy, ExponentialBackoffPolicy
from cloudstore.policies.retry_policy import (
    LimitedErrorCountRetryPolicy,
    LimitedTimeRetryPolicy,
    RetryPolicy,
)

__all__ = [
    "BackoffPolicy",
    "ExponentialBackoffPolicy",
    "RetryPolicy",
    "LimitedErrorCountRetryPolicy",
    "LimitedTimeRetryPolicy",
]
