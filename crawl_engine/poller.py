"""Fixed-interval polling loop.

`ProgressPoller` owns one asyncio task that runs a tick, then asks its owner
how long to wait before the next one. The next sleep starts only after the
current tick settles, so at most one fetch is ever in flight and a slow fetch
delays the schedule instead of queueing ticks behind it.

A tick that raises `PollFetchFailed` is logged and retried on the next
scheduled tick, with no backoff. Any other error a tick raises is logged with
its traceback and the loop carries on the same way. Returning `None` from
the interval callback ends the loop. `stop()` cancels the task and waits for
it, so no tick can run once it returns.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .errors import PollFetchFailed

logger = logging.getLogger(__name__)

Tick = Callable[[], Awaitable[None]]
IntervalPolicy = Callable[[], Optional[float]]


class ProgressPoller:
    """Cancellable, non-overlapping tick loop."""

    def __init__(self, tick: Tick, interval: IntervalPolicy, name: str = "crawl-poller") -> None:
        self._tick = tick
        self._interval = interval
        self._name = name
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop; the first tick runs immediately. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self._name)

    async def stop(self) -> None:
        """Cancel the loop and wait until it has fully stopped."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def wait(self) -> None:
        """Wait for the loop to end on its own (interval policy returned None)."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def _run(self) -> None:
        while True:
            self.ticks += 1
            try:
                await self._tick()
            except PollFetchFailed as exc:
                self.failures += 1
                logger.warning("Poll tick %d failed, retrying on next tick: %s", self.ticks, exc)
            except Exception:
                self.failures += 1
                logger.exception("%s: tick %d raised, polling continues", self._name, self.ticks)

            delay = self._interval()
            if delay is None:
                logger.debug("%s: no further ticks scheduled after %d", self._name, self.ticks)
                return
            await asyncio.sleep(delay)
