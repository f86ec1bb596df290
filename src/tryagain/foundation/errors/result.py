"""Result/Either monad returned by a retry run.

A discriminated union for success/failure:
- Functor: map, map_err
- Monad: flat_map (bind)
- Exhaustive matching via match()

The retry loop resolves to ``Result[S, F]``: ``Ok`` with the operation's
success value or ``Err`` with the single terminal error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")

_OK = True
_ERR = False


class Result(Generic[T, E]):
    """Discriminated union representing success (Ok) or failure (Err).
    
    Examples:
        >>> Ok(42).map(lambda x: x * 2).unwrap()
        84
        >>> Err("fail").map(lambda x: x * 2).unwrap_err()
        'fail'
    """
    
    __slots__ = ("_value", "_is_ok")
    __match_args__ = ("_value",)
    
    def __init__(self, value: T | E, is_ok: bool) -> None:
        self._value = value
        self._is_ok = is_ok
    
    # ─── Type Checking ───────────────────────────────────────────────
    
    def is_ok(self) -> bool:
        return self._is_ok
    
    def is_err(self) -> bool:
        return not self._is_ok
    
    # ─── Value Extraction ────────────────────────────────────────────
    
    def unwrap(self) -> T:
        """Extract Ok value.
        
        Raises:
            RuntimeError: If Result is Err
        """
        if self._is_ok:
            return self._value  # type: ignore[return-value]
        raise RuntimeError(f"Called unwrap() on Err value: {self._value!r}")
    
    def unwrap_err(self) -> E:
        """Extract Err value.
        
        Raises:
            RuntimeError: If Result is Ok
        """
        if not self._is_ok:
            return self._value  # type: ignore[return-value]
        raise RuntimeError(f"Called unwrap_err() on Ok value: {self._value!r}")
    
    def unwrap_or(self, default: T) -> T:
        return self._value if self._is_ok else default  # type: ignore[return-value]
    
    def ok(self) -> T | None:
        """Some(T) if Ok, None if Err."""
        return self._value if self._is_ok else None  # type: ignore[return-value]
    
    def err(self) -> E | None:
        """Some(E) if Err, None if Ok."""
        return None if self._is_ok else self._value  # type: ignore[return-value]
    
    # ─── Transformations ─────────────────────────────────────────────
    
    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        return Result(f(self._value), _OK) if self._is_ok else self  # type: ignore[arg-type,return-value]
    
    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        return self if self._is_ok else Result(f(self._value), _ERR)  # type: ignore[arg-type,return-value]
    
    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        return f(self._value) if self._is_ok else self  # type: ignore[arg-type,return-value]
    
    # ─── Pattern Matching ────────────────────────────────────────────
    
    def match(self, *, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        """Exhaustive pattern match. Forces handling both Ok and Err."""
        return ok(self._value) if self._is_ok else err(self._value)  # type: ignore[arg-type]
    
    # ─── Dunder Methods ──────────────────────────────────────────────
    
    __bool__ = lambda self: self._is_ok  # noqa: E731
    __hash__ = lambda self: hash((self._is_ok, self._value))  # noqa: E731
    __repr__ = lambda self: f"{'Ok' if self._is_ok else 'Err'}({self._value!r})"  # noqa: E731
    __str__ = __repr__
    
    def __eq__(self, other: object) -> bool:
        return self._is_ok == other._is_ok and self._value == other._value if isinstance(other, Result) else NotImplemented
    
    def __iter__(self) -> Iterator[T]:
        """Iterate: yields value if Ok, nothing if Err."""
        if self._is_ok:
            yield self._value  # type: ignore[misc]


def Ok(value: T) -> Result[T, E]:  # noqa: N802
    """Construct Ok variant (success)."""
    return Result(value, _OK)


def Err(error: E) -> Result[T, E]:  # noqa: N802
    """Construct Err variant (failure)."""
    return Result(error, _ERR)
