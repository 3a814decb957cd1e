"""Owned periodic background tasks.

Both the result cache sweep and the lifecycle auto-prune run on a fixed
interval. Each owner holds a ``PeriodicTask`` handle and is responsible
for stopping it; nothing here is module-level state.

Usage:
    >>> task = PeriodicTask("cache-sweep", 300.0, sweep)
    >>> task.start()
    >>> ...
    >>> await task.aclose()
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from rootcache.observability.logging import LogEvents, get_logger

logger = get_logger(__name__)


class PeriodicTask:
    """Runs ``callback`` every ``interval`` seconds on the event loop.

    The first run happens one interval after ``start()``. Exceptions
    raised by the callback are logged and counted; the loop keeps
    running. ``stop()`` cancels the underlying task, so a stopped task
    never keeps the process alive.

    Attributes:
        name: Label used in log events
        interval: Seconds between runs
        runs: Completed callback invocations (successful or not)
        failures: Callback invocations that raised
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Awaitable[Any] | Any],
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self.name = name
        self.interval = interval
        self.callback = callback
        self.runs = 0
        self.failures = 0
        self._task: asyncio.Task[None] | None = None
        self._stopping = False

    @property
    def running(self) -> bool:
        """True between start() and stop() while the task is alive."""
        return (
            self._task is not None and not self._task.done() and not self._stopping
        )

    def start(self) -> "PeriodicTask":
        """Start the loop on the running event loop.

        Safe to call multiple times; a running task is left untouched.

        Raises:
            RuntimeError: If called outside a running event loop
        """
        if self.running:
            return self

        loop = asyncio.get_running_loop()
        self._stopping = False
        self._task = loop.create_task(
            self._run(), name=f"rootcache:{self.name}"
        )
        logger.debug(LogEvents.TASK_STARTED, task=self.name, interval=self.interval)
        return self

    def stop(self) -> None:
        """Cancel the loop. Idempotent."""
        if self._task is None:
            return

        if not self._task.done() and not self._stopping:
            self._stopping = True
            self._task.cancel()
            logger.debug(LogEvents.TASK_STOPPED, task=self.name, runs=self.runs)

    async def aclose(self) -> None:
        """Cancel the loop and wait for it to finish."""
        task = self._task
        self.stop()
        if task is None:
            return

        try:
            await task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None

    async def run_once(self) -> None:
        """Invoke the callback once, logging instead of raising on failure."""
        try:
            result = self.callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.failures += 1
            logger.warning(
                LogEvents.TASK_FAILED,
                task=self.name,
                error=str(e),
                error_type=type(e).__name__,
            )
        finally:
            self.runs += 1

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.run_once()

    def __repr__(self) -> str:
        state = "running" if self.running else "stopped"
        return f"PeriodicTask({self.name!r}, interval={self.interval}, {state})"
