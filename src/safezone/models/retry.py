"""
Retry policy configuration.

Design Pattern: Strategy Pattern
RetryPolicy encapsulates how many attempts are made and how long to wait
between them, so retry() never hardcodes a schedule.

The reference schedule starts at one second and doubles with no cap and no
jitter: 1s, 2s, 4s, 8s, ... For large attempt counts this grows quickly;
set max_delay to cap it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

__all__ = ["RetryPolicy"]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Configuration for retry behavior.

    Examples:
        # Simple: just specify max attempts (reference backoff)
        policy = RetryPolicy.with_max_attempts(3)

        # Named policy
        policy = RetryPolicy.STANDARD

        # Custom policy with a cap
        policy = RetryPolicy(
            max_attempts=8,
            initial_delay=0.5,
            backoff_multiplier=2.0,
            max_delay=10.0,
        )
    """

    max_attempts: int
    """Maximum number of invocations, including the first.

    max_attempts = 3 means:
    - Attempt 1: immediate
    - Attempt 2: after initial_delay
    - Attempt 3: after initial_delay * backoff_multiplier
    """

    initial_delay: float = 1.0
    """Delay in seconds before the first retry."""

    backoff_multiplier: float = 2.0
    """Factor applied to the delay after every retry."""

    max_delay: float | None = None
    """Upper bound on any single delay in seconds. None means unbounded."""

    if TYPE_CHECKING:
        NONE: RetryPolicy
        STANDARD: RetryPolicy
        AGGRESSIVE: RetryPolicy
    else:
        # Set after class definition
        NONE = cast("RetryPolicy", None)
        STANDARD = cast("RetryPolicy", None)
        AGGRESSIVE = cast("RetryPolicy", None)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.initial_delay < 0:
            raise ValueError(f"initial_delay must not be negative, got {self.initial_delay}")
        if self.backoff_multiplier < 1:
            raise ValueError(
                f"backoff_multiplier must be at least 1, got {self.backoff_multiplier}"
            )
        if self.max_delay is not None and self.max_delay < 0:
            raise ValueError(f"max_delay must not be negative, got {self.max_delay}")

    @classmethod
    def with_max_attempts(cls, max_attempts: int) -> RetryPolicy:
        """
        Policy with the reference backoff and a custom attempt budget.

        Raises:
            ValueError: If max_attempts < 1
        """
        return cls(max_attempts=max_attempts)

    def delay_for_attempt(self, attempt: int) -> float | None:
        """
        Delay in seconds after the given attempt failed.

        Args:
            attempt: Number of attempts made so far (1-indexed)

        Returns:
            Seconds to wait before the next attempt, or None if the budget
            is used up.

        Example:
            policy = RetryPolicy.with_max_attempts(4)
            policy.delay_for_attempt(1)  # 1.0
            policy.delay_for_attempt(2)  # 2.0
            policy.delay_for_attempt(3)  # 4.0
            policy.delay_for_attempt(4)  # None
        """
        if attempt >= self.max_attempts:
            return None
        if self.initial_delay == 0:
            return 0.0

        try:
            delay = self.initial_delay * self.backoff_multiplier ** (attempt - 1)
        except OverflowError:
            delay = float("inf")
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return float(delay)

    def total_delay(self) -> float:
        """Worst-case time spent waiting if every attempt fails."""
        return sum(
            self.delay_for_attempt(attempt) or 0.0 for attempt in range(1, self.max_attempts)
        )

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_attempts={self.max_attempts}, "
            f"initial_delay={self.initial_delay}, "
            f"backoff_multiplier={self.backoff_multiplier}, "
            f"max_delay={self.max_delay})"
        )


RetryPolicy.NONE = RetryPolicy(max_attempts=1, initial_delay=0.0, backoff_multiplier=1.0)

RetryPolicy.STANDARD = RetryPolicy(max_attempts=3)

RetryPolicy.AGGRESSIVE = RetryPolicy(
    max_attempts=10,
    initial_delay=0.1,
    backoff_multiplier=1.5,
    max_delay=10.0,
)
