"""Background removal of expired links."""

import asyncio
import logging
from typing import Optional

from .errors import StoreError


class ExpiredLinkSweeper:
    """Periodically deletes links whose expiry has passed.

    Runs as a task on the server's event loop. A failed sweep is logged
    and retried on the next tick.
    """

    def __init__(
        self,
        service,
        interval_seconds: float = 60,
        logger: Optional[logging.Logger] = None,
    ):
        self.service = service
        self.interval_seconds = interval_seconds
        self.logger = logger or logging.getLogger(__name__)
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.enabled:
            self.logger.info("Expired link sweeper disabled")
            return
        if self.running:
            self.logger.warning("Expired link sweeper already running")
            return

        self._task = asyncio.get_running_loop().create_task(self._run())
        self.logger.info(f"Expired link sweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.logger.info("Expired link sweeper stopped")

    async def run_once(self) -> int:
        try:
            return await self.service.sweep_expired()
        except StoreError as e:
            self.logger.error(f"Expired link sweep failed: {e}")
            return 0

    async def _run(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception as e:
                self.logger.error(f"Unexpected error in expired link sweep: {e}", exc_info=True)
            await asyncio.sleep(self.interval_seconds)
