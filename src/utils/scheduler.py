import asyncio
from typing import Awaitable, Callable, Optional

from utils.logger import get_logger

_logger = get_logger(__name__)


class PeriodicTask:
    """
    Runs an async callback every `interval` seconds on the current loop.

    The task belongs to whoever created it; stop() must be called on
    teardown, it cancels the loop and waits for it to finish.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], Awaitable[None]],
        name: str = "periodic",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.callback = callback
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.callback()
            except Exception:
                _logger.exception(f"Periodic task {self.name} failed, continuing.")
