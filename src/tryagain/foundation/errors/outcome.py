"""Three-way outcome of a single attempt.

An attempt either succeeds, fails in a way that may clear up on retry, or
fails in a way that must stop the retry loop immediately:

    >>> Success(3).match(success=str, recoverable=repr, fatal=repr)
    '3'
    >>> Recoverable("503").is_recoverable()
    True

Like ``Result``, this is a single slotted class carrying a tag rather than a
class hierarchy, so there is no fourth "unknown" variant to fall through to.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Callable, Generic, TypeVar, assert_never

S = TypeVar("S")  # Success type
R = TypeVar("R")  # Recoverable error type
F = TypeVar("F")  # Fatal error type
U = TypeVar("U")


class OutcomeKind(StrEnum):
    """Tag identifying the active Outcome variant."""
    SUCCESS = "success"
    RECOVERABLE = "recoverable"
    FATAL = "fatal"


class Outcome(Generic[S, R, F]):
    """Result of one attempt: Success(value), Recoverable(error) or Fatal(error).
    
    Use the ``Success``/``Recoverable``/``Fatal`` constructors. Consumers must
    handle all three variants, either through ``match()`` or by branching on
    ``kind`` and finishing with ``typing.assert_never``.
    """
    
    __slots__ = ("_payload", "_kind")
    __match_args__ = ("kind", "payload")
    
    def __init__(self, payload: S | R | F, kind: OutcomeKind) -> None:
        """Private constructor. Use Success(), Recoverable() or Fatal() instead."""
        self._payload = payload
        self._kind = OutcomeKind(kind)
    
    @property
    def kind(self) -> OutcomeKind:
        return self._kind
    
    @property
    def payload(self) -> S | R | F:
        """Value or error carried by the active variant."""
        return self._payload
    
    def is_success(self) -> bool:
        return self._kind is OutcomeKind.SUCCESS
    
    def is_recoverable(self) -> bool:
        return self._kind is OutcomeKind.RECOVERABLE
    
    def is_fatal(self) -> bool:
        return self._kind is OutcomeKind.FATAL
    
    @property
    def value(self) -> S:
        """Success value.
        
        Raises:
            RuntimeError: If the outcome is not a Success
        """
        if self._kind is OutcomeKind.SUCCESS:
            return self._payload  # type: ignore[return-value]
        raise RuntimeError(f"Outcome has no value: {self!r}")
    
    @property
    def error(self) -> R | F:
        """Recoverable or fatal error.
        
        Raises:
            RuntimeError: If the outcome is a Success
        """
        if self._kind is OutcomeKind.SUCCESS:
            raise RuntimeError(f"Outcome has no error: {self!r}")
        return self._payload  # type: ignore[return-value]
    
    def match(
        self,
        *,
        success: Callable[[S], U],
        recoverable: Callable[[R], U],
        fatal: Callable[[F], U],
    ) -> U:
        """Exhaustive pattern match. Exactly one handler runs."""
        match self._kind:
            case OutcomeKind.SUCCESS:
                return success(self._payload)  # type: ignore[arg-type]
            case OutcomeKind.RECOVERABLE:
                return recoverable(self._payload)  # type: ignore[arg-type]
            case OutcomeKind.FATAL:
                return fatal(self._payload)  # type: ignore[arg-type]
            case _:
                assert_never(self._kind)
    
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Outcome):
            return NotImplemented
        return self._kind is other._kind and self._payload == other._payload
    
    def __hash__(self) -> int:
        return hash((self._kind, self._payload))
    
    def __repr__(self) -> str:
        return f"{_NAMES[self._kind]}({self._payload!r})"


_NAMES = {
    OutcomeKind.SUCCESS: "Success",
    OutcomeKind.RECOVERABLE: "Recoverable",
    OutcomeKind.FATAL: "Fatal",
}


def Success(value: S) -> Outcome[S, R, F]:  # noqa: N802
    """Construct the Success variant."""
    return Outcome(value, OutcomeKind.SUCCESS)


def Recoverable(error: R) -> Outcome[S, R, F]:  # noqa: N802
    """Construct the Recoverable variant (transient failure, retry may help)."""
    return Outcome(error, OutcomeKind.RECOVERABLE)


def Fatal(error: F) -> Outcome[S, R, F]:  # noqa: N802
    """Construct the Fatal variant (stop retrying immediately)."""
    return Outcome(error, OutcomeKind.FATAL)
