"""Backoff policies controlling the delay between retry attempts.

Clients hold a prototype of the policy and clone a fresh instance for every
logical operation, so sibling operations never share backoff state.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod


class BackoffPolicy(ABC):
    """Interface for backoff policies."""

    @abstractmethod
    def clone(self) -> BackoffPolicy:
        """Return a new, independent copy of this policy in its initial state."""
        ...

    @abstractmethod
    def on_completion(self) -> float:
        """Record a failed attempt.

        Returns:
            How long to wait, in seconds, before the next attempt.
        """
        ...


class ExponentialBackoffPolicy(BackoffPolicy):
    """Truncated exponential backoff with randomization.

    The next delay is drawn uniformly from ``[range / 2, range]``. The range
    starts at twice the initial delay and is multiplied by ``scaling`` after
    each call, capped at ``maximum_delay``.
    """

    def __init__(self, initial_delay: float, maximum_delay: float, scaling: float):
        """Initialize an exponential backoff policy.

        Args:
            initial_delay: How long to wait after the first failed attempt,
                in seconds.
            maximum_delay: Upper bound for any delay, in seconds.
            scaling: Growth factor applied to the delay range after every call.

        Raises:
            ValueError: If ``scaling`` is not greater than 1.0 or a delay is
                negative.
        """
        if scaling <= 1.0:
            raise ValueError("scaling factor must be > 1.0")
        if initial_delay < 0 or maximum_delay < 0:
            raise ValueError("backoff delays must be non-negative")
        self.initial_delay = initial_delay
        self.maximum_delay = maximum_delay
        self.scaling = scaling
        self._current_delay_range = min(2 * initial_delay, maximum_delay)
        # Created on the first call to on_completion().
        self._generator: random.Random | None = None

    @property
    def current_delay_range(self) -> float:
        """Upper bound of the range the next delay is drawn from."""
        return self._current_delay_range

    def clone(self) -> ExponentialBackoffPolicy:
        """Return a policy with the same parameters and a reset delay range."""
        # Each clone seeds its own generator.
        return ExponentialBackoffPolicy(
            self.initial_delay, self.maximum_delay, self.scaling
        )

    def on_completion(self) -> float:
        """Draw the next delay and widen the range for the following one.

        Returns:
            Delay in seconds, never above ``maximum_delay``.
        """
        if self._generator is None:
            self._generator = random.Random()
        delay = self._generator.uniform(
            self._current_delay_range / 2, self._current_delay_range
        )
        self._current_delay_range = min(
            self._current_delay_range * self.scaling, self.maximum_delay
        )
        return min(delay, self.maximum_delay)

    def __repr__(self) -> str:
        return (
            f"ExponentialBackoffPolicy(initial_delay={self.initial_delay}, "
            f"maximum_delay={self.maximum_delay}, scaling={self.scaling})"
        )
