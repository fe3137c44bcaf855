import asyncio
from datetime import datetime, timedelta
from typing import List, Optional
from backend import RoomStore
from constants import JANITOR_INTERVAL_SECONDS, ROOM_RETENTION_SECONDS
from logging_config import get_logger

logger = get_logger(__name__)


class Janitor:
    """Periodically deletes rooms that are empty and older than the retention window.

    Age is measured from room creation only. Live membership is never changed
    and nothing is broadcast, since an empty room has no one to notify.
    """

    def __init__(
        self,
        store: RoomStore,
        retention_seconds: int = ROOM_RETENTION_SECONDS,
        interval_seconds: float = JANITOR_INTERVAL_SECONDS,
    ):
        self.store = store
        self.retention = timedelta(seconds=retention_seconds)
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self, now: Optional[datetime] = None) -> List[str]:
        now = now if now is not None else self.store.clock()
        swept = []
        for room_id, room in self.store.all():
            if room.is_empty() and now - room.created_at > self.retention:
                self.store.delete(room_id)
                swept.append(room_id)
        if swept:
            logger.info(f"Janitor swept {len(swept)} empty room(s): {swept}")
        else:
            logger.debug("Janitor sweep found nothing to delete")
        return swept

    async def _run(self):
        logger.info(f"Janitor started (interval {self.interval_seconds}s, retention {self.retention})")
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Error during janitor sweep: {e}", exc_info=True)

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Janitor stopped")
