"""Retry loop: drive an operation until success, fatal error, or give-up.

    >>> async def fetch() -> Outcome[bytes, str, str]:
    ...     resp = await client.get(url)
    ...     if resp.status == 200:
    ...         return Success(resp.body)
    ...     return Recoverable(resp.reason) if resp.status >= 500 else Fatal(resp.reason)
    >>>
    >>> result = await repeatedly_try(fetch, exponential(max_attempts=4), LoggingSink())
    >>> result.unwrap_or(b"")

Each run walks a small state machine::

    ATTEMPTING --success-->      SUCCEEDED       Ok(value), no report
    ATTEMPTING --fatal-->        FATAL_RECEIVED  report(history, error), Err(error)
    ATTEMPTING --recoverable-->  policy.next_wait(history, latest, now)
        Wait(d)  -> WAITING (sleep d) -> ATTEMPTING
        GiveUp   -> GIVEN_UP  report(history, policy.to_fatal(history)), Err(fatal)

Cancellation of the calling task propagates as ``asyncio.CancelledError``.
Cancellation through a CancelScope raises ``RetryCancelled``. Neither
produces a failure report.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable
from dataclasses import dataclass, field
from enum import StrEnum
from functools import wraps
from typing import Any, Callable, ParamSpec, TypeVar, assert_never

from tryagain.foundation.config import get_settings
from tryagain.foundation.errors import (
    AttemptRecord,
    Err,
    FailureReport,
    Ok,
    Outcome,
    OutcomeKind,
    Result,
    RetryCancelled,
    TerminationReason,
    safe_repr,
)
from tryagain.runtime.concurrency import CancelScope, checkpoint
from tryagain.runtime.observability import BoundLogger, get_logger

from .policy import GiveUp, RetryPolicy, Wait
from .sinks import FailureSink, NullSink

S = TypeVar("S")
R = TypeVar("R")
F = TypeVar("F")
P = ParamSpec("P")

Operation = Callable[[], Awaitable[Outcome[S, R, F]]]
Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[object]]


class LoopState(StrEnum):
    """States of a retry run."""
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"            # terminal
    GIVEN_UP = "given_up"              # terminal
    FATAL_RECEIVED = "fatal_received"  # terminal


@dataclass(slots=True)
class RetryLoop:
    """Retry driver with injectable clock, sleep and logger.
    
    A RetryLoop holds no per-run state and can be shared; every ``run`` call
    owns its own history. The policy passed to ``run`` must not be shared with
    a concurrent run if it keeps state.
    
    Attributes:
        clock: Timestamp source for AttemptRecords (default: time.monotonic)
        sleep: Awaitable sleep used for waits (default: asyncio.sleep)
        sink_timeout: Max seconds to await an async sink (None = no limit;
            default from TRYAGAIN_SINK_TIMEOUT)
        logger: Structured logger for the loop's own diagnostics
        name: Label added to log entries
    """
    
    clock: Clock = time.monotonic
    sleep: Sleep = asyncio.sleep
    sink_timeout: float | None = field(default_factory=lambda: get_settings().sink_timeout)
    logger: BoundLogger = field(default_factory=lambda: get_logger("tryagain.retry"))
    name: str | None = None
    
    def __post_init__(self) -> None:
        if self.name:
            self.logger = self.logger.bind(operation=self.name)
    
    async def run(
        self,
        operation: Operation[S, R, F],
        policy: RetryPolicy[R, F],
        sink: FailureSink | None = None,
        *,
        scope: CancelScope | None = None,
    ) -> Result[S, F]:
        """Invoke ``operation`` until it succeeds, fails fatally, or the policy gives up.
        
        Args:
            operation: Zero-argument async callable returning an Outcome
            policy: Decides waits and builds the give-up error; fresh per run if stateful
            sink: Receives one FailureReport if the run fails (default: NullSink)
            scope: Optional cancellation scope covering both suspension points
        
        Returns:
            Ok(success value) or Err(terminal error)
        
        Raises:
            RetryCancelled: If ``scope`` was cancelled
            asyncio.CancelledError: If the calling task was cancelled
        """
        sink = sink if sink is not None else NullSink()
        if scope is None:
            return await self._drive(operation, policy, sink, None)
        async with scope:
            return await self._drive(operation, policy, sink, scope)
    
    async def _drive(
        self,
        operation: Operation[S, R, F],
        policy: RetryPolicy[R, F],
        sink: FailureSink,
        scope: CancelScope | None,
    ) -> Result[S, F]:
        history: list[AttemptRecord[R]] = []
        attempts = 0
        state = LoopState.ATTEMPTING
        log = self.logger
        
        while True:
            await checkpoint()
            if scope is not None and scope.cancel_called:
                raise self._cancelled(attempts, "awaiting operation")
            outcome = await self._suspend(operation(), scope, attempts, "awaiting operation")
            attempts += 1
            
            match outcome.kind:
                case OutcomeKind.SUCCESS:
                    state = LoopState.SUCCEEDED
                    if history:
                        log.info("retry succeeded", attempts=attempts, state=state.value, recoverable_failures=len(history))
                    return Ok(outcome.value)
                
                case OutcomeKind.FATAL:
                    state = LoopState.FATAL_RECEIVED
                    fatal: F = outcome.error  # type: ignore[assignment]
                    log.warning("fatal outcome", attempts=attempts, state=state.value, error=safe_repr(fatal))
                    await self._report(sink, FailureReport(tuple(history), fatal, TerminationReason.FATAL))
                    return Err(fatal)
                
                case OutcomeKind.RECOVERABLE:
                    latest: R = outcome.error  # type: ignore[assignment]
                    now = self.clock()
                    decision = policy.next_wait(tuple(history), latest, now)
                    history.append(AttemptRecord(latest, now))
                    
                    match decision:
                        case Wait(delay=delay):
                            state = LoopState.WAITING
                            log.debug(
                                "retry scheduled", attempt=attempts, delay=delay,
                                state=state.value, error=safe_repr(latest),
                            )
                            await self._suspend(self.sleep(delay), scope, attempts, "waiting")
                            state = LoopState.ATTEMPTING
                        case GiveUp():
                            state = LoopState.GIVEN_UP
                            fatal = policy.to_fatal(tuple(history))
                            log.warning(
                                "gave up", attempts=attempts, state=state.value,
                                recoverable_failures=len(history), error=safe_repr(fatal),
                            )
                            await self._report(sink, FailureReport(tuple(history), fatal, TerminationReason.GAVE_UP))
                            return Err(fatal)
                        case _:
                            assert_never(decision)
                
                case _:
                    assert_never(outcome.kind)
    
    async def _suspend(self, aw: Awaitable[Any], scope: CancelScope | None, attempts: int, during: str) -> Any:
        """Await one suspension point, translating scope cancellation into RetryCancelled."""
        if scope is None:
            return await aw
        try:
            return await scope.run(aw)
        except asyncio.CancelledError:
            if scope.owns_cancellation():
                raise self._cancelled(attempts, during) from None
            raise
    
    def _cancelled(self, attempts: int, during: str) -> RetryCancelled:
        self.logger.info("retry cancelled", attempts=attempts, during=during)
        return RetryCancelled(attempts, during=during)
    
    async def _report(self, sink: FailureSink, report: FailureReport[R, F]) -> None:
        """Hand the report to the sink. Sink failures are logged, never propagated."""
        deadline = asyncio.timeout(self.sink_timeout)
        try:
            pending = sink(report)
            if inspect.isawaitable(pending):
                async with deadline:
                    await pending
        except TimeoutError:
            if deadline.expired():
                self.logger.error("failure sink timed out", timeout=self.sink_timeout, reason=report.reason.value)
            else:
                self.logger.exception("failure sink raised", reason=report.reason.value)
        except Exception:
            self.logger.exception("failure sink raised", reason=report.reason.value)


async def repeatedly_try(
    operation: Operation[S, R, F],
    policy: RetryPolicy[R, F],
    sink: FailureSink | None = None,
    *,
    scope: CancelScope | None = None,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
) -> Result[S, F]:
    """Run ``operation`` under ``policy`` with a one-off RetryLoop. See RetryLoop.run."""
    return await RetryLoop(clock=clock, sleep=sleep).run(operation, policy, sink, scope=scope)


def retrying(
    policy_factory: Callable[[], RetryPolicy[R, F]],
    sink: FailureSink | None = None,
    *,
    loop: RetryLoop | None = None,
) -> Callable[[Callable[P, Awaitable[Outcome[S, R, F]]]], Callable[P, Awaitable[Result[S, F]]]]:
    """Decorator: retry an Outcome-returning coroutine function.
    
    The factory is called once per invocation so stateful policies are never
    shared between runs.
    
    Example:
        >>> @retrying(lambda: fixed_interval(0.1, max_attempts=3), LoggingSink())
        ... async def charge(order_id: str) -> Outcome[Receipt, str, str]: ...
        >>> result = await charge("o-17")
    """
    def decorator(func: Callable[P, Awaitable[Outcome[S, R, F]]]) -> Callable[P, Awaitable[Result[S, F]]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[S, F]:
            driver = loop or RetryLoop(name=func.__qualname__)
            return await driver.run(lambda: func(*args, **kwargs), policy_factory(), sink)
        return wrapper
    return decorator
