"""Tests for backoff strategies and the backoff-driven retry policies."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tryagain.foundation.config import RetrySettings
from tryagain.foundation.errors import AttemptRecord, RetryExhausted
from tryagain.runtime.retry import (
    GIVE_UP,
    BackoffPolicy,
    ConstantBackoff,
    ExponentialBackoff,
    LinearBackoff,
    RetryPolicy,
    Wait,
    exponential,
    fixed_interval,
    linear,
    policy_from_settings,
)


def _history(*times: float, error: object = "timeout") -> tuple[AttemptRecord[object], ...]:
    return tuple(AttemptRecord(error, t) for t in times)


# ═════════════════════════════════════════════════════════════════════════════
# Backoff Strategies
# ═════════════════════════════════════════════════════════════════════════════


def test_exponential_backoff_caps_at_max_delay() -> None:
    b = ExponentialBackoff(base=1.0, max_delay=4.0, multiplier=2.0)
    assert [b.delay(n) for n in range(5)] == [1.0, 2.0, 4.0, 4.0, 4.0]


def test_exponential_backoff_survives_huge_attempt_numbers() -> None:
    assert ExponentialBackoff(base=1.0, max_delay=30.0).delay(5000) == 30.0


def test_linear_and_constant_backoff() -> None:
    assert [LinearBackoff(base=0.5, increment=0.5, max_delay=1.5).delay(n) for n in range(4)] == [0.5, 1.0, 1.5, 1.5]
    assert ConstantBackoff(0.1).delay(0) == ConstantBackoff(0.1).delay(99) == 0.1


# ═════════════════════════════════════════════════════════════════════════════
# Decisions
# ═════════════════════════════════════════════════════════════════════════════


def test_wait_rejects_negative_delay() -> None:
    with pytest.raises(ValueError):
        Wait(-1.0)


def test_builtin_policies_satisfy_protocol() -> None:
    assert isinstance(exponential(), RetryPolicy)
    assert isinstance(fixed_interval(), RetryPolicy)


# ═════════════════════════════════════════════════════════════════════════════
# BackoffPolicy
# ═════════════════════════════════════════════════════════════════════════════


def test_exponential_waits_then_gives_up_at_max_attempts() -> None:
    """base=1, multiplier=2, max=4: waits 1, 2, 4 then gives up on the 4th failure."""
    policy = exponential(base_delay=1.0, multiplier=2.0, max_delay=4.0, max_attempts=4)
    assert policy.next_wait(_history(), "e", now=0.0) == Wait(1.0)
    assert policy.next_wait(_history(0.0), "e", now=1.0) == Wait(2.0)
    assert policy.next_wait(_history(0.0, 1.0), "e", now=3.0) == Wait(4.0)
    assert policy.next_wait(_history(0.0, 1.0, 3.0), "e", now=7.0) == GIVE_UP


def test_fixed_interval_counts_total_attempts() -> None:
    """max_attempts=3: two waits, give up after the third failure."""
    policy = fixed_interval(0.1, max_attempts=3)
    assert policy.next_wait(_history(), "e", now=0.0) == Wait(0.1)
    assert policy.next_wait(_history(0.0), "e", now=0.1) == Wait(0.1)
    assert policy.next_wait(_history(0.0, 0.1), "e", now=0.2) == GIVE_UP


def test_single_attempt_policy_never_waits() -> None:
    assert fixed_interval(1.0, max_attempts=1).next_wait(_history(), "e", now=0.0) == GIVE_UP


def test_max_elapsed_gives_up_before_an_unhonored_wait() -> None:
    """A wait that would start the next attempt past max_elapsed is never returned."""
    policy = fixed_interval(1.0, max_attempts=None, max_elapsed=5.0)
    assert policy.next_wait(_history(), "e", now=100.0) == Wait(1.0)
    assert policy.next_wait(_history(100.0), "e", now=104.0) == Wait(1.0)
    assert policy.next_wait(_history(100.0), "e", now=104.5) == GIVE_UP


def test_policy_is_deterministic() -> None:
    policy = exponential(max_attempts=10)
    history = _history(0.0, 1.0, 3.0)
    assert policy.next_wait(history, "e", 7.0) == policy.next_wait(history, "e", 7.0)


def test_policy_requires_a_bound() -> None:
    with pytest.raises(ValidationError):
        BackoffPolicy(max_attempts=None, max_elapsed=None)
    with pytest.raises(ValidationError):
        fixed_interval(max_attempts=0)


@pytest.mark.parametrize("build", [
    lambda: fixed_interval(-1.0),
    lambda: exponential(base_delay=-2.0),
    lambda: exponential(max_delay=0.0),
    lambda: exponential(multiplier=-2.0),
    lambda: linear(increment=-1.0),
    lambda: linear(base_delay=-0.5),
])
def test_negative_delays_rejected_at_construction(build) -> None:
    with pytest.raises(ValidationError):
        build()


def test_custom_backoff_checked_at_construction() -> None:
    class Backwards:
        def delay(self, attempt: int) -> float:
            return -1.0

    with pytest.raises(ValidationError):
        BackoffPolicy(backoff=Backwards(), max_attempts=3)


def test_zero_delay_is_allowed() -> None:
    assert fixed_interval(0.0).next_wait((), "e", now=0.0) == Wait(0.0)


def test_policy_is_frozen() -> None:
    policy = exponential()
    with pytest.raises(ValidationError):
        policy.max_attempts = 99  # type: ignore[misc]


# ═════════════════════════════════════════════════════════════════════════════
# to_fatal
# ═════════════════════════════════════════════════════════════════════════════


def test_to_fatal_summarizes_history() -> None:
    history = (AttemptRecord("first", 10.0), AttemptRecord("middle", 11.0), AttemptRecord("last", 12.5))
    fatal = fixed_interval(max_attempts=3).to_fatal(history)
    
    assert isinstance(fatal, RetryExhausted)
    assert fatal.attempts == 3
    assert fatal.first_observed_at == 10.0
    assert fatal.last_observed_at == 12.5
    assert fatal.elapsed == pytest.approx(2.5)
    assert fatal.first_error == "'first'"
    assert fatal.last_error == "'last'"
    assert "max_attempts=3" in fatal.message


def test_to_fatal_is_total() -> None:
    """Errors whose repr blows up still produce a terminal error."""
    class Unprintable:
        def __repr__(self) -> str:
            raise RuntimeError("no repr")
    
    fatal = exponential().to_fatal((AttemptRecord(Unprintable(), 1.0),))
    assert fatal.last_error == "<unrepresentable error>"
    assert exponential().to_fatal(()).attempts == 0


def test_to_fatal_truncates_long_errors() -> None:
    fatal = exponential().to_fatal((AttemptRecord("x" * 1000, 1.0),))
    assert fatal.last_error is not None and len(fatal.last_error) == 200


def test_retry_exhausted_serializes() -> None:
    fatal = fixed_interval(max_attempts=2).to_fatal(_history(1.0, 2.0))
    dumped = fatal.model_dump()
    assert dumped["attempts"] == 2
    assert dumped["elapsed"] == 1.0


# ═════════════════════════════════════════════════════════════════════════════
# Settings
# ═════════════════════════════════════════════════════════════════════════════


def test_policy_from_settings_builds_each_strategy() -> None:
    fixed = policy_from_settings(RetrySettings(strategy="fixed", base_delay=0.25, max_attempts=2))
    assert fixed.next_wait(_history(), "e", 0.0) == Wait(0.25)
    assert fixed.next_wait(_history(0.0), "e", 0.25) == GIVE_UP
    
    lin = policy_from_settings(RetrySettings(strategy="linear", base_delay=1.0, increment=2.0, max_attempts=5))
    assert lin.next_wait(_history(0.0), "e", 1.0) == Wait(3.0)
    
    exp = policy_from_settings(RetrySettings(strategy="exponential", base_delay=0.5, multiplier=3.0))
    assert exp.next_wait(_history(0.0), "e", 1.0) == Wait(1.5)


def test_policy_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRYAGAIN_RETRY_STRATEGY", "fixed")
    monkeypatch.setenv("TRYAGAIN_RETRY_BASE_DELAY", "0.2")
    monkeypatch.setenv("TRYAGAIN_RETRY_MAX_ATTEMPTS", "4")
    
    policy = policy_from_settings()
    assert policy.max_attempts == 4
    assert policy.next_wait(_history(), "e", 0.0) == Wait(0.2)


def test_linear_factory() -> None:
    assert linear(1.0, 1.0, 2.5).next_wait(_history(0.0, 1.0), "e", 2.0) == Wait(2.5)
