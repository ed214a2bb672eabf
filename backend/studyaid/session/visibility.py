"""
Visibility-triggered warm-up.

Browsers and mobile OSes suspend background tabs; sockets idle long enough
go stale. When the app becomes visible again after a long enough hidden
period, a background warm-up is scheduled so the first real query does not
land on a dead connection.

Usage:
    monitor = VisibilityMonitor(coordinator.warm_up_connection)
    monitor.mark_hidden()
    ...
    task = monitor.mark_visible()   # None if hidden < 30s
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class VisibilityMonitor:
    """Tracks hidden/visible transitions and fires warm-ups on return."""

    def __init__(
        self,
        warm_up: Callable[[], Awaitable[bool]],
        min_hidden_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._warm_up = warm_up
        self.min_hidden_seconds = min_hidden_seconds
        self._clock = clock
        self.hidden_since: Optional[float] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def hidden(self) -> bool:
        return self.hidden_since is not None

    def mark_hidden(self) -> None:
        if self.hidden_since is None:
            self.hidden_since = self._clock()

    def mark_visible(self) -> Optional[asyncio.Task]:
        """
        Record a hidden → visible transition.

        Returns:
            The scheduled warm-up task, or None if the app was not hidden
            long enough (or was not hidden at all)
        """
        if self.hidden_since is None:
            return None

        hidden_for = self._clock() - self.hidden_since
        self.hidden_since = None

        if hidden_for < self.min_hidden_seconds:
            return None

        logger.info(f"Visible after {hidden_for:.0f}s hidden, warming up connection")
        task = asyncio.get_running_loop().create_task(self._warm_up())
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Background warm-up failed: {error}")
        elif not task.result():
            logger.warning("Background warm-up did not reach the backend")
