"""Adapt exception-raising coroutines into Outcome-returning operations.

Most client libraries signal failure by raising. ``classify_exceptions``
wraps such a coroutine function so the retry loop sees an Outcome instead:

    >>> fetch = classify_exceptions(client.get, recoverable=(TimeoutError, ConnectionError))
    >>> await repeatedly_try(lambda: fetch(url), exponential())

Exceptions outside both sets propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Awaitable
from functools import wraps
from typing import Callable, ParamSpec, TypeVar

from tryagain.foundation.errors import Fatal, Outcome, Recoverable, Success

P = ParamSpec("P")
T = TypeVar("T")

# Transient network and scheduling errors
TRANSIENT_EXCEPTIONS: tuple[type[Exception], ...] = (
    TimeoutError,
    ConnectionError,
)


def classify_exceptions(
    func: Callable[P, Awaitable[T]],
    *,
    recoverable: tuple[type[Exception], ...] = TRANSIENT_EXCEPTIONS,
    fatal: tuple[type[Exception], ...] = (Exception,),
) -> Callable[P, Awaitable[Outcome[T, Exception, Exception]]]:
    """Wrap ``func`` so raised exceptions become Recoverable or Fatal outcomes.

    ``recoverable`` is checked first, so a subclass listed there wins over a
    broader base class in ``fatal``.
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Outcome[T, Exception, Exception]:
        try:
            value = await func(*args, **kwargs)
        except recoverable as e:
            return Recoverable(e)
        except fatal as e:
            return Fatal(e)
        return Success(value)

    return wrapper
