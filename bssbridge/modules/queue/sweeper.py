"""
Background expiration sweep.

poll and status already sweep before reading; this task bounds how long
an expired command or stale cooldown can linger between requests.
"""

import asyncio
import logging
from typing import Optional

from .queue import CommandQueue

logger = logging.getLogger(__name__)


class QueueSweeper:
    """Periodically calls CommandQueue.sweep() on an asyncio task."""

    def __init__(self, queue: CommandQueue, interval_ms: Optional[int] = None):
        self.queue = queue
        self.interval = (interval_ms or queue.config.cleanup_interval_ms) / 1000
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start_background(self) -> asyncio.Task:
        """Start sweeping in a background task. Returns the task handle."""
        self._task = asyncio.create_task(self._run())
        return self._task

    async def stop(self):
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _run(self):
        logger.info(f"Queue sweeper started (interval {self.interval}s)")
        while True:
            await asyncio.sleep(self.interval)
            try:
                expired = self.queue.sweep()
                if expired:
                    logger.info(f"Sweep expired {expired} command(s)")
            except Exception as e:
                logger.error(f"Queue sweep failed: {e}")
