"""tryagain: retry-with-backoff for async operations with three-way outcomes.

An operation returns one Outcome per attempt: Success, Recoverable (retry
may help) or Fatal (stop now). A RetryPolicy turns the history of
recoverable failures into a wait or a give-up, and a RetryLoop drives the
attempts, sleeps, and reports failed runs to a sink exactly once.

Quick Start:
    >>> from tryagain import Fatal, LoggingSink, Recoverable, Success, exponential, repeatedly_try
    >>> 
    >>> async def fetch_rates() -> Outcome[dict, str, str]:
    ...     resp = await http.get("https://rates.example/latest")
    ...     if resp.status_code == 200:
    ...         return Success(resp.json())
    ...     if resp.status_code in (429, 502, 503):
    ...         return Recoverable(f"HTTP {resp.status_code}")
    ...     return Fatal(f"HTTP {resp.status_code}")
    >>> 
    >>> result = await repeatedly_try(fetch_rates, exponential(max_attempts=4), LoggingSink())
    >>> rates = result.unwrap_or({})

Policies:
    >>> exponential(base_delay=1.0, multiplier=2.0, max_delay=30.0, max_attempts=5)
    >>> fixed_interval(0.1, max_attempts=3)
    >>> RepeatedErrorPolicy(exponential(max_elapsed=60.0), max_repeats=3)
    >>> policy_from_settings()  # TRYAGAIN_RETRY_* environment variables

Cancellation:
    >>> scope = CancelScope(timeout=10.0)
    >>> await repeatedly_try(fetch_rates, policy, sink, scope=scope)  # raises RetryCancelled
"""

from tryagain.foundation.config import TryAgainSettings, clear_settings_cache, get_settings
from tryagain.foundation.errors import (
    AttemptRecord,
    Err,
    FailureReport,
    Fatal,
    Ok,
    Outcome,
    OutcomeKind,
    Recoverable,
    Result,
    RetryCancelled,
    RetryExhausted,
    Success,
    TerminationReason,
)
from tryagain.runtime.concurrency import CancelScope
from tryagain.runtime.observability import configure_logging, get_logger
from tryagain.runtime.retry import (
    GIVE_UP,
    BackoffPolicy,
    ConstantBackoff,
    ExponentialBackoff,
    FailureSink,
    GapDoublingPolicy,
    GiveUp,
    LinearBackoff,
    LoggingSink,
    LoopState,
    NullSink,
    RepeatedErrorPolicy,
    RetryDecision,
    RetryLoop,
    RetryPolicy,
    Wait,
    exponential,
    fixed_interval,
    linear,
    policy_from_settings,
    repeatedly_try,
    retrying,
    classify_exceptions,
)

__version__ = "0.1.0"

__all__ = [
    # Outcome & result
    "Outcome", "OutcomeKind", "Success", "Recoverable", "Fatal",
    "Result", "Ok", "Err",
    # History & errors
    "AttemptRecord", "FailureReport", "TerminationReason", "RetryExhausted", "RetryCancelled",
    # Policies
    "RetryPolicy", "RetryDecision", "Wait", "GiveUp", "GIVE_UP",
    "BackoffPolicy", "exponential", "fixed_interval", "linear", "policy_from_settings",
    "GapDoublingPolicy", "RepeatedErrorPolicy",
    "ExponentialBackoff", "LinearBackoff", "ConstantBackoff",
    # Loop
    "RetryLoop", "LoopState", "repeatedly_try", "retrying", "classify_exceptions", "CancelScope",
    # Sinks
    "FailureSink", "LoggingSink", "NullSink",
    # Ambient
    "TryAgainSettings", "get_settings", "clear_settings_cache", "configure_logging", "get_logger",
]
