from datetime import date, datetime
from sqlalchemy import Integer, String, Boolean, ForeignKey, Date, Index, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from habit_tracker.models.base import Base, TimestampMixin
from habit_tracker.utils.datetime_utils import sunday_index


class Habit(Base, TimestampMixin):
    __tablename__ = "habits"
    __table_args__ = (
        Index("ix_habits_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    time_of_day: Mapped[str] = mapped_column(String(20), nullable=False)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False)
    # 0=Sunday .. 6=Saturday
    week_days: Mapped[list[int]] = mapped_column(JSON, default=list)

    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)

    reminder_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    reminder_time: Mapped[str | None] = mapped_column(String(5))

    logs = relationship(
        "HabitLog",
        back_populates="habit",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def is_scheduled_on(self, day: date) -> bool:
        if self.frequency != "weekly" or not self.week_days:
            return True
        return sunday_index(day) in self.week_days


class HabitLog(Base):
    __tablename__ = "habit_logs"
    __table_args__ = (
        Index("ix_habit_logs_habit_date", "habit_id", "log_date", unique=True),
        Index("ix_habit_logs_date", "log_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    habit_id: Mapped[int] = mapped_column(
        ForeignKey("habits.id", ondelete="CASCADE"), nullable=False
    )

    log_date: Mapped[date] = mapped_column(Date, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime | None] = mapped_column()

    habit = relationship("Habit", back_populates="logs")
