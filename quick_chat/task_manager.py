"""Lifecycle tracking for the app's background asyncio tasks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

LOGGER = logging.getLogger(__name__)


class TaskManager:
    """Keep references to spawned tasks so they can be cancelled on shutdown."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def add(self, task: asyncio.Task[Any]) -> asyncio.Task[Any]:
        """Track a task until it completes."""
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Schedule ``coro`` on the running loop and track the resulting task."""
        return self.add(asyncio.create_task(coro))

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error(
                "task.failed",
                exc_info=exc,
                extra={"event": "task.failed", "error_type": type(exc).__name__},
            )

    async def cancel_all(self) -> None:
        """Cancel every tracked task and wait for them to finish."""
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        for task in pending:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
