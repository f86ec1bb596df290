"""Retry policy contract and the backoff-driven policies.

A policy answers two questions for a retry run:

- ``next_wait(history, latest, now)``: after a recoverable failure, wait how
  long before the next attempt, or give up?
- ``to_fatal(history)``: having given up, what terminal error summarizes the
  failures seen?

Both are pure functions of their arguments. Policies never sleep, log or do
I/O; the retry loop owns all of that.

Example:
    >>> policy = exponential(base_delay=1.0, multiplier=2.0, max_delay=4.0, max_attempts=4)
    >>> policy.next_wait([], "timeout", now=0.0)
    Wait(delay=1.0)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, field_validator, model_validator

from tryagain.foundation.errors import AttemptRecord, RetryExhausted

from .backoff import Backoff, ConstantBackoff, ExponentialBackoff, LinearBackoff

if TYPE_CHECKING:
    from tryagain.foundation.config import RetrySettings

R_contra = TypeVar("R_contra", contravariant=True)
F_co = TypeVar("F_co", covariant=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Decisions
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Wait:
    """Sleep ``delay`` seconds, then attempt again."""
    
    delay: float
    
    def __post_init__(self) -> None:
        if self.delay < 0:
            raise ValueError(f"Wait delay must be >= 0, got {self.delay}")


@dataclass(frozen=True, slots=True)
class GiveUp:
    """Stop retrying; the loop asks the policy for a terminal error."""


GIVE_UP = GiveUp()

RetryDecision = Wait | GiveUp


# ═══════════════════════════════════════════════════════════════════════════════
# Contract
# ═══════════════════════════════════════════════════════════════════════════════


@runtime_checkable
class RetryPolicy(Protocol[R_contra, F_co]):
    """Decides wait-or-give-up from recoverable-failure history.
    
    Implementations must eventually return ``GiveUp`` for any endless run of
    recoverable failures (after a bounded count, a bounded elapsed time, or
    both). A policy that keeps state between calls must be created fresh for
    each retry run and never shared between concurrent runs.
    """
    
    def next_wait(
        self, history: Sequence[AttemptRecord[R_contra]], latest: R_contra, now: float,
    ) -> RetryDecision:
        """Decide what to do after a recoverable failure.
        
        Args:
            history: Earlier recoverable failures of this run, oldest first;
                excludes ``latest``
            latest: The recoverable error just observed
            now: Clock reading when ``latest`` was observed
        """
        ...
    
    def to_fatal(self, history: Sequence[AttemptRecord[R_contra]]) -> F_co:
        """Build the terminal error after giving up. Must not raise.
        
        Args:
            history: All recoverable failures of this run, including the one
                that triggered the give-up
        """
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Backoff Policy
# ═══════════════════════════════════════════════════════════════════════════════


class BackoffPolicy(BaseModel):
    """Policy that waits per a Backoff strategy and gives up on count or elapsed time.
    
    - wait = ``backoff.delay(len(history))``
    - ``max_attempts`` counts every operation call: after the k-th recoverable
      failure the policy gives up once k >= max_attempts
    - ``max_elapsed`` bounds the time from the first recoverable failure to
      the start of the next attempt: gives up if elapsed + wait would pass it
    
    At least one of the two bounds is required.
    
    Attributes:
        backoff: Delay strategy
        max_attempts: Total attempts allowed (None = unbounded count)
        max_elapsed: Seconds allowed since the first failure (None = unbounded time)
    """
    
    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # For Backoff protocol
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
        json_schema_extra={
            "title": "Backoff Policy",
            "description": "Wait/give-up decisions driven by a backoff strategy",
        },
    )
    
    backoff: Backoff = Field(default_factory=ExponentialBackoff, repr=False)
    max_attempts: Annotated[int, Field(ge=1)] | None = 5
    max_elapsed: PositiveFloat | None = None
    
    @field_validator("backoff")
    @classmethod
    def _check_backoff(cls, v: Backoff) -> Backoff:
        """Waits must never come out negative."""
        match v:
            case ExponentialBackoff(base=base, max_delay=cap, multiplier=mult):
                ok = base >= 0 and cap > 0 and mult > 0
            case LinearBackoff(base=base, increment=inc, max_delay=cap):
                ok = base >= 0 and inc >= 0 and cap > 0
            case ConstantBackoff(delay_seconds=d):
                ok = d >= 0
            case _:
                ok = v.delay(0) >= 0
        if not ok:
            raise ValueError(f"invalid backoff {v!r}: delays must be >= 0 and max_delay > 0")
        return v
    
    @model_validator(mode="after")
    def _require_bound(self) -> BackoffPolicy:
        """Unbounded policies would retry forever."""
        if self.max_attempts is None and self.max_elapsed is None:
            raise ValueError("BackoffPolicy needs max_attempts, max_elapsed, or both")
        return self
    
    def next_wait(self, history: Sequence[AttemptRecord[object]], latest: object, now: float) -> RetryDecision:
        count = len(history)
        if self.max_attempts is not None and count + 1 >= self.max_attempts:
            return GIVE_UP
        delay = self.backoff.delay(count)
        if self.max_elapsed is not None:
            elapsed = now - history[0].observed_at if history else 0.0
            if elapsed + delay > self.max_elapsed:
                return GIVE_UP
        return Wait(delay)
    
    def to_fatal(self, history: Sequence[AttemptRecord[object]]) -> RetryExhausted:
        if self.max_attempts is not None and len(history) >= self.max_attempts:
            return RetryExhausted.from_history(history, reason=f"reached max_attempts={self.max_attempts}")
        if self.max_elapsed is not None:
            return RetryExhausted.from_history(history, reason=f"max_elapsed={self.max_elapsed}s")
        return RetryExhausted.from_history(history)


# ═══════════════════════════════════════════════════════════════════════════════
# Factories
# ═══════════════════════════════════════════════════════════════════════════════


def exponential(
    base_delay: float = 1.0,
    multiplier: float = 2.0,
    max_delay: float = 30.0,
    *,
    max_attempts: int | None = 5,
    max_elapsed: float | None = None,
) -> BackoffPolicy:
    """Exponential backoff: wait = min(base_delay * multiplier ** count, max_delay)."""
    return BackoffPolicy(
        backoff=ExponentialBackoff(base=base_delay, max_delay=max_delay, multiplier=multiplier),
        max_attempts=max_attempts,
        max_elapsed=max_elapsed,
    )


def fixed_interval(
    delay: float = 1.0,
    *,
    max_attempts: int | None = 3,
    max_elapsed: float | None = None,
) -> BackoffPolicy:
    """Constant wait between attempts."""
    return BackoffPolicy(backoff=ConstantBackoff(delay), max_attempts=max_attempts, max_elapsed=max_elapsed)


def linear(
    base_delay: float = 1.0,
    increment: float = 1.0,
    max_delay: float = 30.0,
    *,
    max_attempts: int | None = 5,
    max_elapsed: float | None = None,
) -> BackoffPolicy:
    """Linear backoff: wait = min(base_delay + increment * count, max_delay)."""
    return BackoffPolicy(
        backoff=LinearBackoff(base=base_delay, increment=increment, max_delay=max_delay),
        max_attempts=max_attempts,
        max_elapsed=max_elapsed,
    )


def policy_from_settings(settings: RetrySettings | None = None) -> BackoffPolicy:
    """Build a BackoffPolicy from TRYAGAIN_RETRY_* settings."""
    if settings is None:
        from tryagain.foundation.config import get_settings
        settings = get_settings().retry
    bounds = {"max_attempts": settings.max_attempts, "max_elapsed": settings.max_elapsed}
    match settings.strategy:
        case "exponential":
            return exponential(settings.base_delay, settings.multiplier, settings.max_delay, **bounds)
        case "fixed":
            return fixed_interval(settings.base_delay, **bounds)
        case "linear":
            return linear(settings.base_delay, settings.increment, settings.max_delay, **bounds)
        case _:
            raise ValueError(f"Unknown retry strategy: {settings.strategy}")
