import asyncio
import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from utils.scheduler import PeriodicTask  # noqa: E402


class PeriodicTaskTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_runs_until_stopped(self):
        ticks = []

        async def tick():
            ticks.append(len(ticks))

        task = PeriodicTask(0.01, tick, name="test")
        self.assertFalse(task.running)
        task.start()
        self.assertTrue(task.running)
        await asyncio.sleep(0.1)
        await task.stop()
        self.assertFalse(task.running)

        count = len(ticks)
        self.assertGreater(count, 1)
        await asyncio.sleep(0.05)
        self.assertEqual(len(ticks), count)

    async def test_start_twice_keeps_one_loop(self):
        ticks = []

        async def tick():
            ticks.append(1)

        task = PeriodicTask(0.05, tick)
        task.start()
        task.start()
        await asyncio.sleep(0.075)
        await task.stop()
        self.assertEqual(len(ticks), 1)

    async def test_callback_errors_do_not_stop_the_loop(self):
        calls = []

        async def flaky():
            calls.append(1)
            raise RuntimeError("boom")

        task = PeriodicTask(0.01, flaky)
        task.start()
        await asyncio.sleep(0.08)
        self.assertTrue(task.running)
        await task.stop()
        self.assertGreater(len(calls), 1)

    async def test_stop_without_start(self):
        task = PeriodicTask(1, lambda: None)
        await task.stop()
        self.assertFalse(task.running)

    def test_interval_must_be_positive(self):
        with self.assertRaises(ValueError):
            PeriodicTask(0, lambda: None)


if __name__ == "__main__":
    unittest.main()
