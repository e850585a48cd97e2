"""Background task that runs the expiry sweeper periodically."""

import asyncio
import logging
from typing import Callable, Optional

from relay.config import SWEEP_INTERVAL_SECONDS
from relay.services.expiry_sweeper import ExpirySweeper

logger = logging.getLogger(__name__)


class PeriodicSweepTask:
    """
    Background task that sweeps expired codes on a fixed interval.

    The sweep itself is blocking file I/O and runs in a worker thread so the
    event loop keeps serving downloads.
    """

    def __init__(
        self,
        sweeper_factory: Callable[[], ExpirySweeper],
        interval_seconds: int = SWEEP_INTERVAL_SECONDS,
    ):
        """
        Initialize sweep task.

        Args:
            sweeper_factory: Returns the sweeper to run each cycle
            interval_seconds: Time between sweeps (0 or less disables the task)
        """
        self.sweeper_factory = sweeper_factory
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background sweep task."""
        if self.interval_seconds <= 0:
            logger.info("Periodic sweep disabled")
            return

        if self._running:
            logger.warning("Sweep task already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started periodic sweep task (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Stopped periodic sweep task")

    async def _run(self) -> None:
        """Main loop for sweep task."""
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                await self.run_once()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in sweep task: {e}", exc_info=True)

    async def run_once(self) -> int:
        """Execute one sweep cycle off the event loop."""
        sweeper = self.sweeper_factory()
        removed = await asyncio.to_thread(sweeper.sweep)
        if removed:
            logger.info(f"Periodic sweep removed {removed} entries")
        return removed
