"""Self-rescheduling recurring actions on a single asyncio loop."""

import asyncio
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class RecurringTask:
    """Runs ``action`` every ``interval_ms``; each run schedules the next one."""

    def __init__(self, loop: asyncio.AbstractEventLoop, interval_ms: int, action: Callable[[], None]):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.loop = loop
        self.interval_ms = interval_ms
        self.action = action
        self.runs = 0
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False

    def start(self, immediate: bool = False):
        """Schedule the first run; ``immediate`` runs the action now instead.

        If the immediate run raises, the task is cancelled and the error
        propagates to the caller.
        """
        if immediate:
            self.runs += 1
            try:
                self.action()
            except Exception:
                self._cancelled = True
                raise
        self._schedule()

    def _schedule(self):
        if not self._cancelled:
            self._handle = self.loop.call_later(self.interval_ms / 1000, self._fire)

    def _fire(self):
        if self._cancelled:
            return
        self.runs += 1
        try:
            self.action()
        finally:
            # A failing action still recurs; the error goes to the loop's handler.
            self._schedule()

    def cancel(self):
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self):
        return f"<RecurringTask every={self.interval_ms}ms runs={self.runs}>"


class TimerService:
    """Owns the recurring tasks registered on one event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()
        self.tasks: List[RecurringTask] = []

    def every(self, interval_ms: int, action: Callable[[], None], immediate: bool = False) -> RecurringTask:
        """Run ``action`` every ``interval_ms``; with ``immediate`` the first run is synchronous."""
        task = RecurringTask(self.loop, interval_ms, action)
        task.start(immediate=immediate)
        self.tasks.append(task)
        return task

    def cancel_all(self):
        """Stop every task. Only used when the hosting process shuts down."""
        for task in self.tasks:
            task.cancel()
        logger.debug(f"cancelled {len(self.tasks)} recurring task(s)")
