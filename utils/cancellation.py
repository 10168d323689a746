from __future__ import annotations

import asyncio
import threading
from typing import Awaitable, TypeVar

from utils.errors import RunCancelled

T = TypeVar("T")


class CancellationToken:
    """Cooperative cancellation token for one pipeline run.

    ``cancel`` must be called from the thread running the event loop; the
    flag itself is also readable from other threads.
    """

    def __init__(self) -> None:
        self._ev = threading.Event()
        self._async_ev: asyncio.Event | None = None

    def _event(self) -> asyncio.Event:
        if self._async_ev is None:
            self._async_ev = asyncio.Event()
            if self._ev.is_set():
                self._async_ev.set()
        return self._async_ev

    def cancel(self) -> None:
        """Signal cancellation."""
        self._ev.set()
        if self._async_ev is not None:
            self._async_ev.set()

    def is_set(self) -> bool:
        """Return True if cancellation requested."""
        return self._ev.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`RunCancelled` if the token has been cancelled."""
        if self._ev.is_set():
            raise RunCancelled("cancelled")

    async def sleep(self, delay: float) -> None:
        """Sleep for *delay* seconds, waking early and raising on cancellation."""
        self.raise_if_cancelled()
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(self._event().wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise RunCancelled("cancelled")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable*, abandoning it if the token is cancelled first."""
        self.raise_if_cancelled()
        work = asyncio.ensure_future(awaitable)
        stop = asyncio.ensure_future(self._event().wait())
        try:
            await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            stop.cancel()
        if work.done():
            return work.result()
        work.cancel()
        raise RunCancelled("cancelled")
