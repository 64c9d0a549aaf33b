"""
Retry policies handed to the execution delegate with every request.

The raw client always passes ``RetryOptions.default_optimistic()``; what the
policy means operationally is up to the delegate. ``Backoff.retrying`` builds
a tenacity controller for delegates that want the standard interpretation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random_exponential,
)


class BackoffKind(str, Enum):
    NONE = "none"
    NO_JITTER = "no_jitter"
    FULL_JITTER = "full_jitter"


@dataclass(frozen=True)
class Backoff:
    """
    Exponential backoff schedule.

    Delays start at ``base_delay_ms`` and double up to ``max_delay_ms``.
    ``max_attempts`` counts retries, not the initial try.
    """
    kind: BackoffKind = BackoffKind.NONE
    base_delay_ms: int = 0
    max_delay_ms: int = 0
    max_attempts: int = 0

    @classmethod
    def no_backoff(cls) -> "Backoff":
        return cls()

    @classmethod
    def no_jitter_backoff(cls, base_delay_ms: int, max_delay_ms: int, max_attempts: int) -> "Backoff":
        return cls(BackoffKind.NO_JITTER, base_delay_ms, max_delay_ms, max_attempts)

    @classmethod
    def full_jitter_backoff(cls, base_delay_ms: int, max_delay_ms: int, max_attempts: int) -> "Backoff":
        return cls(BackoffKind.FULL_JITTER, base_delay_ms, max_delay_ms, max_attempts)

    @property
    def is_none(self) -> bool:
        return self.kind is BackoffKind.NONE or self.max_attempts == 0

    def retrying(self, should_retry: Callable[[BaseException], bool]) -> AsyncRetrying:
        """
        Build a tenacity controller following this schedule.

        The last error is re-raised unchanged once attempts run out.
        """
        if self.is_none:
            return AsyncRetrying(stop=stop_after_attempt(1), reraise=True)

        multiplier = self.base_delay_ms / 1000
        max_wait = self.max_delay_ms / 1000
        if self.kind is BackoffKind.FULL_JITTER:
            wait = wait_random_exponential(multiplier=multiplier, max=max_wait)
        else:
            wait = wait_exponential(multiplier=multiplier, max=max_wait)

        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts + 1),
            wait=wait,
            retry=retry_if_exception(should_retry),
            reraise=True,
        )


# 2ms doubling to 500ms, ten retries
DEFAULT_REGION_BACKOFF = Backoff.no_jitter_backoff(2, 500, 10)
OPTIMISTIC_BACKOFF = Backoff.no_jitter_backoff(2, 500, 10)


@dataclass(frozen=True)
class RetryOptions:
    """Retry policy for one dispatched request."""
    region_backoff: Backoff = DEFAULT_REGION_BACKOFF
    lock_backoff: Backoff = OPTIMISTIC_BACKOFF

    @classmethod
    def default_optimistic(cls) -> "RetryOptions":
        return cls(DEFAULT_REGION_BACKOFF, OPTIMISTIC_BACKOFF)

    @classmethod
    def none(cls) -> "RetryOptions":
        return cls(Backoff.no_backoff(), Backoff.no_backoff())
