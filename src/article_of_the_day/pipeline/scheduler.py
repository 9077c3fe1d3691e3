"""Daily trigger source for pipeline runs."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from .orchestrator import Orchestrator

logger = logging.getLogger(__name__)


def seconds_until_next_run(now: datetime, hour: int, minute: int) -> float:
    """Seconds from `now` until the next hour:minute (strictly in the future).

    A naive `now` is local wall-clock time. The result is measured in
    real elapsed time, so a daylight-saving change before the target
    still lands the run on hour:minute local time.
    """
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return target.timestamp() - now.timestamp()


class DailyScheduler:
    """
    Triggers an orchestrator run every day at a fixed local time.

    The scheduler only produces trigger events; overlapping runs are
    dropped by the orchestrator itself.
    """

    def __init__(self, orchestrator: Orchestrator, hour: int = 9, minute: int = 0):
        self.orchestrator = orchestrator
        self.hour = hour
        self.minute = minute
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
            logger.info("[SCHEDULER] Daily run at %02d:%02d", self.hour, self.minute)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self) -> None:
        while True:
            delay = seconds_until_next_run(datetime.now(), self.hour, self.minute)
            logger.info("[SCHEDULER] Next run in %.0f minutes", delay / 60)
            await asyncio.sleep(delay)

            result = await self.orchestrator.run()
            logger.info("[SCHEDULER] Scheduled run finished: %s", result.status.value)
