"""History-aware retry policies beyond plain backoff.

- GapDoublingPolicy: next wait is a multiple of the gap since the previous
  failure; gives up once failures are spaced too far apart
- RepeatedErrorPolicy: wraps another policy and gives up early when the same
  error keeps coming back

Example:
    >>> policy = RepeatedErrorPolicy(exponential(max_attempts=10), max_repeats=3)
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from typing import Callable

from tryagain.foundation.errors import AttemptRecord, RetryExhausted

from .policy import GIVE_UP, RetryDecision, RetryPolicy, Wait


@dataclass(frozen=True, slots=True)
class GapDoublingPolicy:
    """Wait ``multiplier`` times the gap between the last two failures.
    
    The first recoverable failure waits ``initial_delay``. Each later failure
    measures the time since the previous one and waits that gap times
    ``multiplier``; once a gap exceeds ``give_up_after`` the policy gives up.
    Since every gap includes the previous wait, gaps grow geometrically and
    the policy always terminates on a clock that advances across sleeps.
    
    A clock reading earlier than the previous failure falls back to
    ``initial_delay``.
    
    Attributes:
        initial_delay: Wait after the first failure, in seconds
        multiplier: Growth factor applied to the observed gap (> 1)
        give_up_after: Largest tolerated gap between failures, in seconds
        max_attempts: Optional cap on total attempts
    """
    
    initial_delay: float = 1.0
    multiplier: float = 2.0
    give_up_after: float = 30.0
    max_attempts: int | None = None
    
    def __post_init__(self) -> None:
        if self.initial_delay <= 0:
            raise ValueError("initial_delay must be > 0")
        if self.multiplier <= 1:
            raise ValueError("multiplier must be > 1")
        if self.give_up_after <= 0:
            raise ValueError("give_up_after must be > 0")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
    
    def next_wait(self, history: Sequence[AttemptRecord[object]], latest: object, now: float) -> RetryDecision:
        if self.max_attempts is not None and len(history) + 1 >= self.max_attempts:
            return GIVE_UP
        if not history:
            return Wait(self.initial_delay)
        gap = now - history[-1].observed_at
        if gap < 0:
            return Wait(self.initial_delay)
        if gap > self.give_up_after:
            return GIVE_UP
        return Wait(gap * self.multiplier)
    
    def to_fatal(self, history: Sequence[AttemptRecord[object]]) -> RetryExhausted:
        if self.max_attempts is not None and len(history) >= self.max_attempts:
            return RetryExhausted.from_history(history, reason=f"reached max_attempts={self.max_attempts}")
        return RetryExhausted.from_history(history, reason=f"failures more than {self.give_up_after}s apart")


def error_key(error: object) -> Hashable:
    """Default identity for "the same error": type plus full message.
    
    Errors whose str() raises are keyed by object identity, so two of them
    never count as a repeat.
    """
    try:
        text = str(error)
    except Exception:
        return (type(error).__qualname__, id(error))
    return (type(error).__qualname__, text)


@dataclass(frozen=True, slots=True)
class RepeatedErrorPolicy:
    """Give up once the same recoverable error occurs ``max_repeats`` times in a row.
    
    Otherwise defers to ``inner`` for the wait. The terminal error names the
    streak when the streak caused the give-up, and comes from ``inner`` otherwise.
    Two errors are "the same" when ``key`` maps them to equal values.
    
    Attributes:
        inner: Policy consulted while the streak is below the limit
        max_repeats: Consecutive identical failures that force a give-up (>= 1)
        key: Maps an error to a hashable identity
    """
    
    inner: RetryPolicy[object, object]
    max_repeats: int = 3
    key: Callable[[object], Hashable] = field(default=error_key, repr=False)
    
    def __post_init__(self) -> None:
        if self.max_repeats < 1:
            raise ValueError("max_repeats must be >= 1")
    
    def streak(self, history: Sequence[AttemptRecord[object]], latest: object) -> int:
        """Length of the run of failures identical to ``latest`` ending at ``latest``."""
        target = self.key(latest)
        count = 1
        for record in reversed(history):
            if self.key(record.error) != target:
                break
            count += 1
        return count
    
    def next_wait(self, history: Sequence[AttemptRecord[object]], latest: object, now: float) -> RetryDecision:
        if self.streak(history, latest) >= self.max_repeats:
            return GIVE_UP
        return self.inner.next_wait(history, latest, now)
    
    def to_fatal(self, history: Sequence[AttemptRecord[object]]) -> object:
        if history and self.streak(history[:-1], history[-1].error) >= self.max_repeats:
            return RetryExhausted.from_history(history, reason=f"same error {self.max_repeats} times in a row")
        return self.inner.to_fatal(history)
