"""Records of a retry run: recoverable failures and the final failure report."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar, Union

R = TypeVar("R")
F = TypeVar("F")

# JSON type aliases - Any for recursive slots
JsonValue = Union[str, int, float, bool, None, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]

_REPR_LIMIT = 200
_UNREPRESENTABLE = "<unrepresentable error>"


def safe_repr(value: object, limit: int = _REPR_LIMIT) -> str:
    """repr() that never raises and never grows past ``limit`` characters."""
    try:
        text = repr(value)
    except Exception:  # noqa: BLE001 - arbitrary user __repr__
        return _UNREPRESENTABLE
    return text if len(text) <= limit else f"{text[:limit - 3]}..."


@dataclass(frozen=True, slots=True)
class AttemptRecord(Generic[R]):
    """One recoverable failure observed during a retry run.
    
    Attributes:
        error: The recoverable error returned by the attempt
        observed_at: Clock reading (seconds) when the failure was classified
    """
    
    error: R
    observed_at: float


class TerminationReason(StrEnum):
    """Why a retry run ended without success."""
    FATAL = "fatal"        # Operation returned a Fatal outcome
    GAVE_UP = "gave_up"    # Policy decided to stop; error built from history


@dataclass(frozen=True, slots=True)
class FailureReport(Generic[R, F]):
    """Everything the failure sink gets when a run terminates without success.
    
    Delivered exactly once per failed run. ``recoverable_history`` is in
    chronological order; for ``GAVE_UP`` it includes the failure that
    triggered the give-up.
    """
    
    recoverable_history: tuple[AttemptRecord[R], ...]
    terminal_error: F
    reason: TerminationReason
    
    @property
    def attempts(self) -> int:
        """Number of operation invocations the run made."""
        extra = 1 if self.reason is TerminationReason.FATAL else 0
        return len(self.recoverable_history) + extra
    
    @property
    def gave_up(self) -> bool:
        return self.reason is TerminationReason.GAVE_UP
    
    def to_log_dict(self) -> JsonDict:
        """JSON-friendly summary for structured logging."""
        history = self.recoverable_history
        return {
            "reason": self.reason.value,
            "attempts": self.attempts,
            "recoverable_failures": len(history),
            "first_failure_at": history[0].observed_at if history else None,
            "last_failure_at": history[-1].observed_at if history else None,
            "terminal_error": safe_repr(self.terminal_error),
        }
