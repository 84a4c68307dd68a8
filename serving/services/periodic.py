"""Fixed-interval background tasks with an explicit start/stop lifecycle."""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs `fn` every `interval_seconds` on the running event loop.

    Exceptions from `fn` are logged and the schedule continues. `fn` is a plain
    callable and should be cheap; it runs on the loop thread.
    """

    def __init__(self, name: str, fn: Callable[[], object], interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive: {interval_seconds}")
        self.name = name
        self.fn = fn
        self.interval_seconds = interval_seconds
        self.runs = 0
        self.failures = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the current event loop. Idempotent."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"periodic:{self.name}")
        logger.info("[sweep] Started %s every %ss", self.name, self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish. Idempotent."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("[sweep] Stopped %s", self.name)

    def run_once(self) -> None:
        self.runs += 1
        try:
            self.fn()
        except Exception:
            self.failures += 1
            logger.exception("[sweep] %s failed; keeping schedule", self.name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.run_once()
