"""Tests for the TaskManager lifecycle helper."""

from __future__ import annotations

import asyncio
import unittest

from quick_chat.task_manager import TaskManager


class TaskManagerTests(unittest.IsolatedAsyncioTestCase):
    """Validate tracked task lifecycle management."""

    async def test_spawn_and_cancel_all(self) -> None:
        tm = TaskManager()
        cancelled: list[bool] = []

        async def _worker() -> None:
            try:
                await asyncio.sleep(9999)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        task = tm.spawn(_worker())
        await asyncio.sleep(0)  # Let the task start.
        self.assertEqual(len(tm), 1)
        await tm.cancel_all()
        self.assertTrue(task.done())
        self.assertTrue(cancelled)
        self.assertEqual(len(tm), 0)

    async def test_finished_tasks_are_released(self) -> None:
        tm = TaskManager()

        async def _worker() -> int:
            return 7

        task = tm.spawn(_worker())
        self.assertEqual(await task, 7)
        await asyncio.sleep(0)
        self.assertEqual(len(tm), 0)

    async def test_failed_task_is_logged(self) -> None:
        tm = TaskManager()

        async def _worker() -> None:
            raise RuntimeError("boom")

        with self.assertLogs("quick_chat.task_manager", level="ERROR") as logs:
            task = tm.add(asyncio.create_task(_worker()))
            with self.assertRaises(RuntimeError):
                await task
            await asyncio.sleep(0)
        self.assertTrue(any("task.failed" in line for line in logs.output))

    async def test_cancel_all_when_empty_is_noop(self) -> None:
        await TaskManager().cancel_all()


if __name__ == "__main__":
    unittest.main()
