"""Cooperative cancellation for backoff waits and turnaround pauses."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from wardrobe_app.errors import OperationCancelledError

SleepFn = Callable[[float], Awaitable[None]]


class CancellationToken:
    """Signal shared between a caller and the remote calls it started."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self, context: str = "operation") -> None:
        if self.cancelled:
            detail = f": {self.reason}" if self.reason else ""
            raise OperationCancelledError(f"{context} cancelled{detail}")


async def cancellable_sleep(
    seconds: float,
    token: CancellationToken | None = None,
    sleep: SleepFn = asyncio.sleep,
    context: str = "wait",
) -> None:
    """Sleep for ``seconds`` unless ``token`` fires first.

    Raises :class:`OperationCancelledError` when the token is (or becomes)
    cancelled, so no further remote call is issued after the wait.
    """

    if token is None:
        await sleep(seconds)
        return

    token.raise_if_cancelled(context)
    sleeper = asyncio.ensure_future(sleep(seconds))
    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleeper, waiter):
            if not task.done():
                task.cancel()
    if sleeper in done:
        sleeper.result()
    token.raise_if_cancelled(context)


__all__ = ["CancellationToken", "SleepFn", "cancellable_sleep"]
