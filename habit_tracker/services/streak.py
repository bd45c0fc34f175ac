"""
Streak calculation over a habit's completion history. Pure, no DB access.
"""
from datetime import date
from typing import Iterable

from habit_tracker.utils.datetime_utils import configured_today, parse_date


def calculate_streak(
    completed_dates: Iterable[date | str],
    today: date | None = None,
) -> tuple[int, int]:
    """
    Returns (current_streak, longest_streak).

    The current streak tolerates one missing day at the head: a run that
    ended yesterday still counts. It is only ever taken from the first two
    entries of the descending list, and a head older than yesterday leaves
    run tracking at zero for that entry. Both quirks are kept so stored
    streaks stay compatible with existing data.
    """
    today = today or configured_today()
    dates = sorted((parse_date(d) for d in completed_dates), reverse=True)

    current_streak = 0
    longest_streak = 0
    temp_streak = 0

    for i, log_date in enumerate(dates):
        if i == 0:
            if (today - log_date).days <= 1:
                current_streak = 1
                temp_streak = 1
        elif (dates[i - 1] - log_date).days == 1:
            temp_streak += 1
            if i == 1:
                current_streak = temp_streak
        else:
            temp_streak = 1

        longest_streak = max(longest_streak, temp_streak)

    return current_streak, longest_streak
