from datetime import date
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from habit_tracker.repositories.habit_repo import HabitRepository
from habit_tracker.utils.datetime_utils import configured_today, get_week_bounds, week_dates


class ViewService:
    def __init__(
        self,
        session: AsyncSession,
        today_provider: Callable[[], date] | None = None,
    ):
        self.session = session
        self.habit_repo = HabitRepository(session)
        self.today = today_provider or configured_today

    async def daily_view(self, day: date | None = None) -> dict:
        day = day or self.today()
        habits = await self.habit_repo.list_habits()
        logs = await self.habit_repo.get_logs_for_date(day)
        completed = {log.habit_id for log in logs if log.completed}

        return {
            "date": day,
            "habits": [
                {
                    "habit": habit,
                    "scheduled": habit.is_scheduled_on(day),
                    "completed": habit.id in completed,
                }
                for habit in habits
            ],
        }

    async def weekly_view(self, day: date | None = None) -> dict:
        day = day or self.today()
        week_start, week_end = get_week_bounds(day)
        days = week_dates(day)

        habits = await self.habit_repo.list_habits()
        logs = await self.habit_repo.get_logs_range(week_start, week_end)
        completed = {(log.habit_id, log.log_date) for log in logs if log.completed}

        rows = []
        for habit in habits:
            cells = [
                {
                    "date": d,
                    "scheduled": habit.is_scheduled_on(d),
                    "completed": (habit.id, d) in completed,
                }
                for d in days
            ]
            rows.append({
                "habit": habit,
                "days": cells,
                "completed_count": sum(1 for c in cells if c["completed"]),
            })

        return {
            "week_start": week_start,
            "week_end": week_end,
            "days": days,
            "habits": rows,
        }
