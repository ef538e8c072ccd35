"""
Cache invalidation: explicit calls plus event-driven full invalidation.

Full invalidation sources (a periodic timer, an OS signal) are trigger
objects handed to the controller at construction. The controller subscribes
to each one while started; nothing is registered globally.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import AsyncIterator, Iterable
from typing import Protocol, runtime_checkable

from .cache import PathCache

logger = logging.getLogger(__name__)


@runtime_checkable
class InvalidationTrigger(Protocol):
    """A source of full-invalidation events."""

    name: str

    def events(self) -> AsyncIterator[str]:
        """Yield one reason string per invalidation request."""
        ...


class PeriodicTrigger:
    """Fires every `interval_seconds`. An interval <= 0 never fires."""

    def __init__(self, interval_seconds: float):
        self.interval_seconds = interval_seconds
        self.name = f"timer({interval_seconds}s)"

    async def events(self) -> AsyncIterator[str]:
        if self.interval_seconds <= 0:
            return
        while True:
            await asyncio.sleep(self.interval_seconds)
            yield "timer"


class SignalTrigger:
    """
    Fires whenever the process receives `signum` (SIGHUP by default).

    Uses the running event loop's signal handlers. Where those are not
    available (Windows, or a loop outside the main thread) the trigger logs a
    warning and produces no events.
    """

    def __init__(self, signum: int | None = None):
        if signum is None:
            signum = getattr(signal, "SIGHUP", None)
        self.signum = signum
        self.name = f"signal({signum})"

    async def events(self) -> AsyncIterator[str]:
        if self.signum is None:
            logger.warning("No signal available for cache invalidation on this platform")
            return

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[int] = asyncio.Queue()
        try:
            loop.add_signal_handler(self.signum, queue.put_nowait, self.signum)
        except (NotImplementedError, RuntimeError, ValueError) as e:
            logger.warning("Cannot watch signal %s for cache invalidation: %s", self.signum, e)
            return

        try:
            while True:
                signum = await queue.get()
                yield signal.Signals(signum).name
        finally:
            loop.remove_signal_handler(self.signum)


class InvalidationController:
    """
    Front door for every cache invalidation.

    Point and parent invalidation are direct calls (used after structural
    changes). Full invalidation is a direct call too, and is also run for
    every event of the triggers passed in. No listing is re-fetched eagerly;
    the next read populates lazily.
    """

    def __init__(self, cache: PathCache, triggers: Iterable[InvalidationTrigger] = ()):
        self._cache = cache
        self._triggers = list(triggers)
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def invalidate(self, path: str) -> None:
        self._cache.invalidate(path)

    def invalidate_parent(self, path: str) -> None:
        self._cache.invalidate_parent(path)

    def invalidate_all(self, reason: str = "request") -> None:
        self._cache.invalidate_all()
        logger.info("Directory cache invalidated (%s)", reason)

    async def start(self) -> None:
        """Subscribe to every trigger. Must be called from a running loop."""
        if self._tasks:
            return
        for trigger in self._triggers:
            task = asyncio.create_task(self._consume(trigger), name=f"invalidate-{trigger.name}")
            self._tasks.append(task)
        logger.debug("Invalidation controller started with %d trigger(s)", len(self._tasks))

    async def stop(self) -> None:
        """Unsubscribe from all triggers."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("Invalidation controller stopped")

    async def _consume(self, trigger: InvalidationTrigger) -> None:
        try:
            async for reason in trigger.events():
                self.invalidate_all(reason)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Invalidation trigger %s failed: %s", trigger.name, e)
