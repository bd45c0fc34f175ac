from datetime import date
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from habit_tracker.config import Settings
from habit_tracker.core.database import Database
from habit_tracker.services.reset_service import DailyResetService
from habit_tracker.utils.datetime_utils import local_today

logger = logging.getLogger(__name__)


class DailyResetScheduler:
    def __init__(self, database: Database, settings: Settings):
        self.database = database
        self.settings = settings
        self.scheduler = AsyncIOScheduler(timezone=settings.TIMEZONE)

    def start(self):
        if self.scheduler.running:
            return
        self.scheduler.add_job(
            self.reset_tick,
            "cron",
            hour=self.settings.RESET_HOUR,
            minute=self.settings.RESET_MINUTE,
            id="daily_log_reset",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self.scheduler.start()
        logger.info(
            "Daily reset scheduled at %02d:%02d %s",
            self.settings.RESET_HOUR,
            self.settings.RESET_MINUTE,
            self.settings.TIMEZONE,
        )

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    async def reset_tick(self, day: date | None = None) -> int:
        logger.info("Running daily reset job")
        day = day or local_today(self.settings.TIMEZONE)
        try:
            async with self.database.session() as session:
                return await DailyResetService(session).run(day)
        except Exception as e:
            logger.warning("Daily reset skipped (db/network): %s", e)
            return 0
