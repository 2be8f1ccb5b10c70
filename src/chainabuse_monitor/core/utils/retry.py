"""
Purpose: Retry policy with exponential backoff for outbound HTTP calls.
Constraints: Utility only; callers decide which exceptions are retriable.
"""

# Imports
import os
import random
import time
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Iterator, Optional, Type, TypeVar

T = TypeVar("T")


# Public API
@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try and how long to wait in between.

    ``attempts`` counts the first call, so the default of 1 means no retry.
    """

    attempts: int = 1
    base_delay: float = 0.5
    max_delay: float = 5.0
    jitter: float = 0.2

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")

    @classmethod
    def from_env(cls, **overrides) -> "RetryPolicy":
        policy = cls(
            attempts=int(os.getenv("HTTP_RETRY_ATTEMPTS", "1")),
            base_delay=float(os.getenv("HTTP_RETRY_BASE_DELAY", "0.5")),
            max_delay=float(os.getenv("HTTP_RETRY_MAX_DELAY", "5.0")),
            jitter=float(os.getenv("HTTP_RETRY_JITTER", "0.2")),
        )
        return policy.with_overrides(**overrides)

    def with_overrides(self, **overrides) -> "RetryPolicy":
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self

    def delay(self, attempt: int) -> float:
        """Wait before retry number ``attempt`` (1-based), capped at max_delay plus jitter."""
        base = min(self.max_delay, self.base_delay * (2 ** (attempt - 1)))
        return base + random.uniform(0, self.jitter) if self.jitter else base

    def delays(self) -> Iterator[float]:
        for attempt in range(1, self.attempts):
            yield self.delay(attempt)


def retry(
    func: Callable[[], T],
    policy: Optional[RetryPolicy] = None,
    *,
    exceptions: Iterable[Type[Exception]] = (Exception,),
    on_retry: Optional[Callable[[int, Exception], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``func`` until it succeeds or the policy runs out; the last exception propagates."""
    policy = policy or RetryPolicy()
    caught = tuple(exceptions)
    attempt = 1
    for wait in policy.delays():
        try:
            return func()
        except caught as exc:
            if on_retry:
                on_retry(attempt, exc)
            sleep(wait)
        attempt += 1
    return func()
