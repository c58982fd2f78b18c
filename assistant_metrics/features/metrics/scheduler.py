"""Background job that stores a metrics snapshot on a fixed interval."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class MetricsScheduler:
    """Runs a job after an initial delay and then every interval_seconds."""

    def __init__(
        self,
        job: Callable[[], Awaitable[object]],
        interval_seconds: float,
        initial_delay_seconds: float = 0,
    ):
        self.job = job
        self.interval_seconds = interval_seconds
        self.initial_delay_seconds = initial_delay_seconds
        self.failures = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        """
        Run the job once.

        A failure does not stop the schedule. The job logs its own errors, so
        only a debug line is written here.
        """
        try:
            await self.job()
            return True
        except Exception as e:
            self.failures += 1
            logger.debug(f"Scheduled run failed ({self.failures} so far): {type(e).__name__}")
            return False

    async def _loop(self) -> None:
        await asyncio.sleep(self.initial_delay_seconds)
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "Metrics scheduler started: first run in %ss, then every %ss",
            self.initial_delay_seconds,
            self.interval_seconds,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Metrics scheduler stopped")
