"""Retry-with-backoff for Outcome-returning async operations.

Example:
    >>> from tryagain.runtime.retry import LoggingSink, exponential, repeatedly_try
    >>> 
    >>> result = await repeatedly_try(
    ...     fetch_invoice,
    ...     exponential(base_delay=0.5, max_delay=8.0, max_attempts=5),
    ...     LoggingSink(),
    ... )
    >>> if result.is_err():
    ...     print(result.unwrap_err())
"""

from .adapters import TRANSIENT_EXCEPTIONS, classify_exceptions
from .backoff import Backoff, ConstantBackoff, ExponentialBackoff, LinearBackoff
from .loop import LoopState, RetryLoop, repeatedly_try, retrying
from .policy import (
    GIVE_UP,
    BackoffPolicy,
    GiveUp,
    RetryDecision,
    RetryPolicy,
    Wait,
    exponential,
    fixed_interval,
    linear,
    policy_from_settings,
)
from .sinks import FailureSink, LoggingSink, NullSink
from .strategy import GapDoublingPolicy, RepeatedErrorPolicy, error_key

__all__ = [
    # Backoff strategies
    "Backoff",
    "ExponentialBackoff",
    "LinearBackoff",
    "ConstantBackoff",
    # Policy contract
    "RetryPolicy",
    "RetryDecision",
    "Wait",
    "GiveUp",
    "GIVE_UP",
    # Policies
    "BackoffPolicy",
    "exponential",
    "fixed_interval",
    "linear",
    "policy_from_settings",
    "GapDoublingPolicy",
    "RepeatedErrorPolicy",
    "error_key",
    # Sinks
    "FailureSink",
    "LoggingSink",
    "NullSink",
    # Execution
    "RetryLoop",
    "LoopState",
    "repeatedly_try",
    "retrying",
    # Adapters
    "classify_exceptions",
    "TRANSIENT_EXCEPTIONS",
]
