import asyncio
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dealership.features.otp.services.otp_service import OtpService
from dealership.platform.logger import get_logger

logger = get_logger(__name__)


class OtpCleanupSweeper:
    """Background task purging expired and used OTP records on a fixed interval.

    Owned by whoever calls ``start``; ``stop`` interrupts the wait between
    runs and waits for the task to finish.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        interval_seconds: float,
    ):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="otp-cleanup-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        await self._task
        self._task = None

    async def sweep_once(self) -> int:
        async with self.session_factory() as db:
            return await OtpService(db).purge_expired()

    async def _run(self) -> None:
        logger.info("OTP cleanup sweeper started")
        while not self._stop_event.is_set():
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("Error occurred during OTP cleanup")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("OTP cleanup sweeper stopped")
