"""Value types for retry runs.

- Outcome/Success/Recoverable/Fatal: three-way result of one attempt
- Result/Ok/Err: two-way result of a whole run
- AttemptRecord/FailureReport: recoverable-failure history and its final report
- RetryExhausted/RetryCancelled: give-up error value and cancellation exception
"""

from .errors import RetryCancelled, RetryExhausted
from .outcome import Fatal, Outcome, OutcomeKind, Recoverable, Success
from .result import Err, Ok, Result
from .types import (
    AttemptRecord,
    FailureReport,
    JsonDict,
    JsonValue,
    TerminationReason,
    safe_repr,
)

__all__ = [
    # Attempt outcome
    "Outcome", "OutcomeKind", "Success", "Recoverable", "Fatal",
    # Run result
    "Result", "Ok", "Err",
    # History & reporting
    "AttemptRecord", "FailureReport", "TerminationReason", "safe_repr",
    # Terminal errors
    "RetryExhausted", "RetryCancelled",
    # JSON aliases
    "JsonDict", "JsonValue",
]
