"""Retry policies deciding whether a failed operation may be attempted again.

Typical retry loop::

    policy = prototype.clone()
    while not policy.is_exhausted():
        try:
            return attempt()
        except StorageError as error:
            if not policy.on_failure(error):
                if policy.is_permanent_failure(error):
                    raise permanent_error(name, error)
                raise exhausted_error(name, error)
        time.sleep(backoff.on_completion())
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from cloudstore.exceptions import StorageError, is_permanent_failure

PermanentFailureClassifier = Callable[[StorageError], bool]


class RetryPolicy(ABC):
    """Interface for retry policies.

    Permanent failures never consume the retry budget: ``on_failure`` returns
    False right away so callers can report them as fatal rather than as an
    exhausted policy.
    """

    def __init__(
        self, classifier: PermanentFailureClassifier = is_permanent_failure
    ) -> None:
        """Initialize the policy.

        Args:
            classifier: Predicate returning True for errors that must never be
                retried.
        """
        self._classifier = classifier

    def is_permanent_failure(self, error: StorageError) -> bool:
        """Return True if the error can never succeed on retry."""
        return self._classifier(error)

    def on_failure(self, error: StorageError) -> bool:
        """Record a failure.

        Args:
            error: The error returned by the last attempt.

        Returns:
            True if another attempt is allowed.
        """
        if self.is_permanent_failure(error):
            return False
        self._on_failure_impl()
        return not self.is_exhausted()

    @abstractmethod
    def is_exhausted(self) -> bool:
        """Return True once no more attempts are allowed."""
        ...

    @abstractmethod
    def clone(self) -> RetryPolicy:
        """Return a fresh copy of this policy with an unused budget."""
        ...

    @abstractmethod
    def _on_failure_impl(self) -> None:
        """Consume the retry budget for a transient failure."""
        ...


class LimitedErrorCountRetryPolicy(RetryPolicy):
    """Tolerate up to ``maximum_failures`` transient failures."""

    def __init__(
        self,
        maximum_failures: int,
        classifier: PermanentFailureClassifier = is_permanent_failure,
    ) -> None:
        """Initialize the policy.

        Args:
            maximum_failures: Number of transient failures tolerated. Failure
                ``maximum_failures + 1`` exhausts the policy.
            classifier: Predicate returning True for permanent errors.
        """
        super().__init__(classifier)
        if maximum_failures < 0:
            raise ValueError("maximum_failures must be non-negative")
        self.maximum_failures = maximum_failures
        self._failure_count = 0

    @property
    def failure_count(self) -> int:
        """Number of transient failures recorded so far."""
        return self._failure_count

    def is_exhausted(self) -> bool:
        """Return True once more than ``maximum_failures`` failures were seen."""
        return self._failure_count > self.maximum_failures

    def clone(self) -> LimitedErrorCountRetryPolicy:
        """Return a policy with the same limit and a zero failure count."""
        return LimitedErrorCountRetryPolicy(self.maximum_failures, self._classifier)

    def _on_failure_impl(self) -> None:
        self._failure_count += 1

    def __repr__(self) -> str:
        return f"LimitedErrorCountRetryPolicy(maximum_failures={self.maximum_failures})"


class LimitedTimeRetryPolicy(RetryPolicy):
    """Keep retrying until a deadline fixed at construction time passes."""

    def __init__(
        self,
        maximum_duration: float,
        classifier: PermanentFailureClassifier = is_permanent_failure,
    ) -> None:
        """Initialize the policy.

        Args:
            maximum_duration: Seconds from now after which the policy is
                exhausted.
            classifier: Predicate returning True for permanent errors.
        """
        super().__init__(classifier)
        self.maximum_duration = maximum_duration
        self._deadline = time.monotonic() + maximum_duration

    @property
    def deadline(self) -> float:
        """Deadline on the ``time.monotonic()`` clock."""
        return self._deadline

    def is_exhausted(self) -> bool:
        """Return True once the deadline has passed."""
        return time.monotonic() >= self._deadline

    def clone(self) -> LimitedTimeRetryPolicy:
        """Return a policy whose deadline starts counting from now."""
        return LimitedTimeRetryPolicy(self.maximum_duration, self._classifier)

    def _on_failure_impl(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"LimitedTimeRetryPolicy(maximum_duration={self.maximum_duration})"
