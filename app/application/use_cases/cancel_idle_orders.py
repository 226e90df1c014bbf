"""Background sweep that cancels checkouts nobody paid for"""

import asyncio
import logging
import threading
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import sessionmaker

from ...core.clock import Clock
from ...db.database import ping
from ...infrastructure.repositories.unit_of_work_impl import UnitOfWorkImpl

logger = logging.getLogger(__name__)


class IdleOrderReaper:
    """Cancels PENDING orders with no payment after ``stale_after``.

    Only one sweep runs at a time per process; an overlapping call returns
    immediately. Orders that already carry a payment id are left alone so a
    late webhook can still settle them.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Clock,
        stale_after: timedelta = timedelta(minutes=2),
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.stale_after = stale_after
        self._running = threading.Lock()
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> int:
        if not self._running.acquire(blocking=False):
            logger.info("Idle order sweep already running, skipping")
            return 0
        try:
            if not ping(self.session_factory):
                logger.warning("Database not reachable, skipping idle order sweep")
                return 0

            now = self.clock.now()
            async with UnitOfWorkImpl(self.session_factory) as uow:
                cancelled = await uow.orders.cancel_stale_pending(now - self.stale_after, now)

            if cancelled:
                logger.info(f"Cancelled {cancelled} idle pending order(s)")
            return cancelled
        except Exception:
            logger.exception("Idle order sweep failed")
            return 0
        finally:
            self._running.release()

    async def _loop(self, interval: float) -> None:
        logger.info(f"Idle order reaper started (every {interval}s, stale after {self.stale_after})")
        while True:
            await self.run_once()
            await asyncio.sleep(interval)

    def start(self, interval: float = 120) -> None:
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self._loop(interval))

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Idle order reaper stopped")
