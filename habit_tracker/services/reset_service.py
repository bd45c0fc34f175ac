from datetime import date
from typing import Callable
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from habit_tracker.repositories.habit_repo import HabitRepository
from habit_tracker.utils.datetime_utils import configured_today

logger = logging.getLogger(__name__)


class DailyResetService:
    """Makes sure every habit has a log row for the day, incomplete by default."""

    def __init__(
        self,
        session: AsyncSession,
        today_provider: Callable[[], date] | None = None,
    ):
        self.session = session
        self.habit_repo = HabitRepository(session)
        self.today = today_provider or configured_today

    async def run(self, day: date | None = None) -> int:
        day = day or self.today()
        habits = await self.habit_repo.list_habits()

        created = 0
        for habit in habits:
            if await self.habit_repo.has_log(habit.id, day):
                continue
            if await self.habit_repo.create_incomplete_log(habit.id, day):
                created += 1

        logger.info(
            "Daily reset for %s: %d of %d habits got a new log",
            day.isoformat(), created, len(habits),
        )
        return created
