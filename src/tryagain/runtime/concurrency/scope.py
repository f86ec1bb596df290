"""Cancellation scopes for cooperative retry runs.

A CancelScope is a cancellation token for one retry run. Awaitables started
through ``scope.run()`` are wrapped in tasks the scope can cancel, so a
``cancel()`` call (or the scope's timeout) interrupts whichever suspension
point the run is currently parked on: the operation call or the backoff
sleep.

Example:
    >>> scope = CancelScope(timeout=30.0)
    >>> result = await loop.run(fetch, policy, sink, scope=scope)
    >>> # elsewhere: scope.cancel()  -> run raises RetryCancelled
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from types import TracebackType

T = TypeVar("T")


@dataclass(slots=True)
class CancelScope:
    """Cancellation scope with optional timeout.
    
    Attributes:
        timeout: Seconds after entering the scope at which it cancels itself
    """
    
    timeout: float | None = None
    _cancel_called: bool = field(default=False, repr=False)
    _timeout_task: asyncio.Task[None] | None = field(default=None, repr=False)
    _tasks: set[asyncio.Task[object]] = field(default_factory=set, repr=False)
    
    @property
    def cancel_called(self) -> bool:
        """Whether cancellation was requested."""
        return self._cancel_called
    
    def cancel(self) -> None:
        """Cancel all in-flight work started through this scope."""
        self._cancel_called = True
        for task in self._tasks:
            if not task.done():
                task.cancel()
    
    async def run(self, aw: Awaitable[T]) -> T:
        """Await ``aw`` as a task this scope can cancel.
        
        Raises:
            asyncio.CancelledError: If the scope is (or becomes) cancelled, or
                the calling task itself is cancelled
        """
        if self._cancel_called:
            if asyncio.iscoroutine(aw):
                aw.close()
            raise asyncio.CancelledError
        task: asyncio.Task[T] = asyncio.ensure_future(aw)  # type: ignore[assignment]
        self._tasks.add(task)  # type: ignore[arg-type]
        try:
            return await task
        finally:
            self._tasks.discard(task)  # type: ignore[arg-type]
    
    def owns_cancellation(self) -> bool:
        """True when a CancelledError came from this scope, not from the caller's task."""
        if not self._cancel_called:
            return False
        current = asyncio.current_task()
        return current is None or current.cancelling() == 0
    
    async def __aenter__(self) -> CancelScope:
        if self.timeout is not None:
            self._timeout_task = asyncio.create_task(self._timeout_handler())
        return self
    
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool:
        if self._timeout_task:
            self._timeout_task.cancel()
            try:
                await self._timeout_task
            except asyncio.CancelledError:
                pass
        # Suppress CancelledError if we initiated the cancellation
        return exc_type is asyncio.CancelledError and self.owns_cancellation()
    
    async def _timeout_handler(self) -> None:
        assert self.timeout is not None
        await asyncio.sleep(self.timeout)
        self.cancel()


async def checkpoint() -> None:
    """Cooperative cancellation checkpoint.
    
    Yields control to the event loop, allowing pending cancellations
    to be processed.
    """
    await asyncio.sleep(0)
