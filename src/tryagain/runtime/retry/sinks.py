"""Failure sinks: where a failed retry run reports its history.

A sink is any callable taking a FailureReport; it may be sync or async. The
retry loop calls it exactly once per run that ends without success. Sinks
are shared between independent runs, so they must tolerate concurrent calls.
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from tryagain.foundation.errors import FailureReport, safe_repr
from tryagain.runtime.observability import BoundLogger, get_logger


@runtime_checkable
class FailureSink(Protocol):
    """Receives the report of a failed retry run."""
    
    def __call__(self, report: FailureReport[Any, Any]) -> None | Awaitable[None]: ...


@dataclass(slots=True)
class LoggingSink:
    """Writes a failure report to the structured logger.
    
    Logs each recoverable failure at warning level (oldest first), then the
    terminal error at error level with the report summary.
    
    Attributes:
        logger: Target logger (default: ``tryagain.sink``)
        log_history: Also log one entry per recoverable failure
    """
    
    logger: BoundLogger = field(default_factory=lambda: get_logger("tryagain.sink"))
    log_history: bool = True
    
    def __call__(self, report: FailureReport[Any, Any]) -> None:
        if self.log_history:
            total = len(report.recoverable_history)
            for i, record in enumerate(report.recoverable_history, 1):
                self.logger.warning(
                    "recoverable failure",
                    failure=f"{i}/{total}",
                    observed_at=record.observed_at,
                    error=safe_repr(record.error),
                )
        self.logger.error("retry run failed", **report.to_log_dict())


@dataclass(frozen=True, slots=True)
class NullSink:
    """Discards reports."""
    
    def __call__(self, report: FailureReport[Any, Any]) -> None:
        return None
