from datetime import date, datetime
import logging

from sqlalchemy import select, delete, func, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from habit_tracker.models.habit import Habit, HabitLog
from habit_tracker.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class HabitRepository(BaseRepository):
    model = Habit

    async def list_habits(self) -> list[Habit]:
        return await self.get_all(Habit.created_at.desc(), Habit.id.desc())

    async def delete_habit(self, habit_id: int) -> bool:
        habit = await self.get_by_id(habit_id)
        if not habit:
            return False
        await self.session.execute(
            delete(HabitLog).where(HabitLog.habit_id == habit_id)
        )
        await self.session.delete(habit)
        await self.session.flush()
        return True

    async def get_completed_dates(self, habit_id: int) -> list[date]:
        stmt = (
            select(HabitLog.log_date)
            .where(
                and_(
                    HabitLog.habit_id == habit_id,
                    HabitLog.completed == True,
                )
            )
            .order_by(HabitLog.log_date.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_completed(self, habit_id: int) -> int:
        stmt = select(func.count()).where(
            and_(
                HabitLog.habit_id == habit_id,
                HabitLog.completed == True,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar()

    async def get_log(self, habit_id: int, log_date: date) -> HabitLog | None:
        stmt = select(HabitLog).where(
            and_(
                HabitLog.habit_id == habit_id,
                HabitLog.log_date == log_date,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def has_log(self, habit_id: int, log_date: date) -> bool:
        return await self.get_log(habit_id, log_date) is not None

    async def upsert_log(
        self,
        habit_id: int,
        log_date: date,
        completed: bool,
        completed_at: datetime | None = None,
    ) -> HabitLog:
        log = await self.get_log(habit_id, log_date)
        if log is None:
            log = HabitLog(habit_id=habit_id, log_date=log_date)
            try:
                async with self.session.begin_nested():
                    log.completed = completed
                    log.completed_at = completed_at
                    self.session.add(log)
            except IntegrityError:
                # another writer inserted the same (habit, date) first
                log = await self.get_log(habit_id, log_date)
        log.completed = completed
        log.completed_at = completed_at
        await self.session.flush()
        await self.session.refresh(log, ["habit"])
        return log

    async def create_incomplete_log(self, habit_id: int, log_date: date) -> bool:
        try:
            async with self.session.begin_nested():
                self.session.add(
                    HabitLog(habit_id=habit_id, log_date=log_date, completed=False)
                )
        except IntegrityError:
            logger.debug("Log for habit %s on %s already exists", habit_id, log_date)
            return False
        return True

    async def get_logs_range(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[HabitLog]:
        stmt = select(HabitLog).options(selectinload(HabitLog.habit))
        if start_date is not None and end_date is not None:
            stmt = stmt.where(
                and_(
                    HabitLog.log_date >= start_date,
                    HabitLog.log_date <= end_date,
                )
            )
        stmt = stmt.order_by(HabitLog.log_date, HabitLog.habit_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_logs_for_date(self, log_date: date) -> list[HabitLog]:
        return await self.get_logs_range(log_date, log_date)
