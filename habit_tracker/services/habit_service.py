from datetime import date, datetime
from typing import Callable
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from habit_tracker.models.habit import Habit, HabitLog
from habit_tracker.repositories.habit_repo import HabitRepository
from habit_tracker.services.streak import calculate_streak
from habit_tracker.utils.datetime_utils import configured_today

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "name",
    "time_of_day",
    "frequency",
    "week_days",
    "reminder_enabled",
    "reminder_time",
)


class HabitService:
    """Habit CRUD plus completion logging.

    Lookups that miss return ``None`` (or ``False`` for deletes); the caller
    decides how to report that.
    """

    def __init__(
        self,
        session: AsyncSession,
        today_provider: Callable[[], date] | None = None,
    ):
        self.session = session
        self.habit_repo = HabitRepository(session)
        self.today = today_provider or configured_today

    async def list_habits(self) -> list[Habit]:
        return await self.habit_repo.list_habits()

    async def get_habit(self, habit_id: int) -> Habit | None:
        return await self.habit_repo.get_by_id(habit_id)

    async def create_habit(
        self,
        name: str,
        time_of_day: str,
        frequency: str,
        week_days: list[int] | None = None,
        reminder_enabled: bool = False,
        reminder_time: str | None = None,
    ) -> Habit:
        habit = await self.habit_repo.create(
            name=name,
            time_of_day=time_of_day,
            frequency=frequency,
            week_days=sorted(set(week_days or [])),
            reminder_enabled=reminder_enabled,
            reminder_time=reminder_time,
        )
        logger.info("Created habit %s (%s)", habit.id, habit.name)
        return habit

    async def update_habit(self, habit_id: int, **fields) -> Habit | None:
        changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        if "week_days" in changes:
            changes["week_days"] = sorted(set(changes["week_days"] or []))
        return await self.habit_repo.update(habit_id, **changes)

    async def delete_habit(self, habit_id: int) -> bool:
        deleted = await self.habit_repo.delete_habit(habit_id)
        if deleted:
            logger.info("Deleted habit %s with its logs", habit_id)
        return deleted

    async def set_log(
        self, habit_id: int, log_date: date, completed: bool
    ) -> HabitLog | None:
        habit = await self.habit_repo.get_by_id(habit_id)
        if not habit:
            return None

        log = await self.habit_repo.upsert_log(
            habit_id=habit_id,
            log_date=log_date,
            completed=completed,
            completed_at=datetime.utcnow() if completed else None,
        )
        await self.recalculate_streaks(habit_id)
        return log

    async def recalculate_streaks(self, habit_id: int) -> Habit | None:
        current_streak, longest_streak = await self._calculate_streak(habit_id)
        return await self.habit_repo.update(
            habit_id,
            current_streak=current_streak,
            longest_streak=longest_streak,
        )

    async def get_stats(self, habit_id: int) -> dict | None:
        habit = await self.habit_repo.get_by_id(habit_id)
        if not habit:
            return None

        total_completed = await self.habit_repo.count_completed(habit_id)
        current_streak, longest_streak = await self._calculate_streak(habit_id)

        return {
            "total_completed": total_completed,
            "current_streak": current_streak,
            "longest_streak": longest_streak,
            "habit": habit,
        }

    async def get_logs(
        self, start_date: date | None = None, end_date: date | None = None
    ) -> list[HabitLog]:
        if start_date is None or end_date is None:
            return await self.habit_repo.get_logs_range()
        return await self.habit_repo.get_logs_range(start_date, end_date)

    async def get_today_logs(self) -> list[HabitLog]:
        return await self.habit_repo.get_logs_for_date(self.today())

    async def _calculate_streak(self, habit_id: int) -> tuple[int, int]:
        dates = await self.habit_repo.get_completed_dates(habit_id)
        return calculate_streak(dates, self.today())
