"""Terminal error values and the cancellation exception for retry runs.

``RetryExhausted`` is what the built-in policies synthesize when they give
up. It is a value (returned inside ``Err``), not an exception. Cancellation
is the one condition reported by raising, since it is not a failure of the
operation.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .types import AttemptRecord, safe_repr


class RetryExhausted(BaseModel):
    """Non-recoverable error summarizing a run of recoverable failures.
    
    Attributes:
        message: Human-readable summary
        attempts: Number of recoverable failures observed
        first_observed_at: Clock reading of the first failure
        last_observed_at: Clock reading of the last failure
        first_error: repr of the first recoverable error
        last_error: repr of the last recoverable error
    """
    
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        extra="forbid",
        revalidate_instances="never",
        json_schema_extra={
            "title": "Retry Exhausted",
            "description": "Terminal error built from recoverable-failure history",
            "examples": [{
                "message": "gave up after 3 recoverable failures",
                "attempts": 3,
                "first_observed_at": 10.0,
                "last_observed_at": 10.2,
                "first_error": "'timeout'",
                "last_error": "'timeout'",
            }],
        },
    )
    
    message: Annotated[str, Field(min_length=1)]
    attempts: Annotated[int, Field(ge=0)] = 0
    first_observed_at: float | None = None
    last_observed_at: float | None = None
    first_error: str | None = Field(default=None, repr=False)
    last_error: str | None = None
    
    @computed_field
    @property
    def elapsed(self) -> float:
        """Seconds between the first and last recorded failure."""
        if self.first_observed_at is None or self.last_observed_at is None:
            return 0.0
        return max(0.0, self.last_observed_at - self.first_observed_at)
    
    @classmethod
    def from_history(cls, history: Sequence[AttemptRecord[object]], *, reason: str = "") -> Self:
        """Summarize history. Never raises; bypasses validation like the other hot-path builders."""
        n = len(history)
        message = f"gave up after {n} recoverable failure{'' if n == 1 else 's'}"
        if reason:
            message = f"{message}: {reason}"
        if not history:
            return cls.model_construct(
                message=message, attempts=0, first_observed_at=None,
                last_observed_at=None, first_error=None, last_error=None,
            )
        first, last = history[0], history[-1]
        return cls.model_construct(
            message=message,
            attempts=n,
            first_observed_at=first.observed_at,
            last_observed_at=last.observed_at,
            first_error=safe_repr(first.error),
            last_error=safe_repr(last.error),
        )
    
    def __str__(self) -> str:
        return f"{self.message} (last error: {self.last_error})" if self.last_error else self.message


class RetryCancelled(Exception):
    """Raised when a retry run is stopped through its CancelScope.
    
    Distinct from any fatal error: the run was abandoned from outside, and
    no failure report is produced.
    """
    
    def __init__(self, attempts: int, *, during: str = "") -> None:
        self.attempts = attempts
        self.during = during
        where = f" while {during}" if during else ""
        super().__init__(f"retry cancelled after {attempts} attempt{'' if attempts == 1 else 's'}{where}")
