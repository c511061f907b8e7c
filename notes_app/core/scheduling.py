"""
Cancellable Scheduled Tasks.

Single-shot delayed work on the running asyncio event loop. Used for the
search debounce: every new trigger cancels the pending task and schedules
a fresh one, so only the trailing edge of a burst of triggers runs.

Usage:
    from notes_app.core.scheduling import Debouncer

    debouncer = Debouncer(0.3, collection.reload, name="search")

    debouncer.trigger()   # schedule (or reschedule) the reload
    debouncer.cancel()    # drop pending work, e.g. on teardown
"""

import asyncio
from collections.abc import Awaitable, Callable

from notes_app.core.logging import get_logger

logger = get_logger(__name__)


class Debouncer:
    """Runs an async callback once after a quiet period.

    The delay is reset, not extended, on each trigger: the callback fires
    `delay` seconds after the last trigger. Once closed, triggers are
    ignored and the callback never runs again.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[], Awaitable[None]],
        name: str = "debounce",
    ) -> None:
        self.delay = delay
        self._callback = callback
        self._name = name
        self._task: asyncio.Task | None = None
        self._running: set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> bool:
        """Whether a scheduled run is waiting for its delay to elapse."""
        return self._task is not None and not self._task.done()

    @property
    def running(self) -> bool:
        """Whether a committed run is executing its callback."""
        return bool(self._running)

    def trigger(self) -> None:
        """Cancel any pending run and schedule a new one."""
        if self._closed:
            logger.debug("Trigger ignored after close", extra={"debouncer": self._name})
            return
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"{self._name}-debounce",
        )

    def cancel(self) -> None:
        """Cancel the pending run, if any."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def close(self) -> None:
        """Cancel pending work and refuse further triggers."""
        self._closed = True
        self.cancel()

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        # Past the delay the run is committed; a new trigger no longer cancels it.
        task = asyncio.current_task()
        if self._task is task:
            self._task = None
        self._running.add(task)
        try:
            await self._callback()
        finally:
            self._running.discard(task)
