from __future__ import annotations

"""Shared cancellation signal for one execution.

A single ``CancellationSignal`` is threaded through every suspension point of a
turn: the model call, capability I/O against the environment, and settle
delays. Firing it makes each of them raise ``RequestCancelledError`` instead
of returning a partial result.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from .errors import RequestCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationSignal:
    """Cooperative cancellation flag backed by an ``asyncio.Event``."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason or "Task cancelled"

    def cancel(self, reason: Optional[str] = None) -> None:
        """Fire the signal. Subsequent calls keep the first reason."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.debug(f"Cancellation signal fired: {self.reason}")

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelledError(self.reason)

    async def wait(self) -> None:
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the signal fires first.

        When the signal wins, the pending work is cancelled and drained before
        ``RequestCancelledError`` is raised.
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise RequestCancelledError(self.reason)
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if self._event.is_set():
            if not task.done():
                task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise RequestCancelledError(self.reason)
        return task.result()

    async def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds`` or until the signal fires, whichever comes first."""
        self.raise_if_cancelled()
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise RequestCancelledError(self.reason)
