from habit_tracker.models.base import Base
from habit_tracker.models.habit import Habit, HabitLog
