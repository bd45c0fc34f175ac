import random
from datetime import date, timedelta

import pytest

from habit_tracker.config import settings
from habit_tracker.services.streak import calculate_streak
from habit_tracker.utils.datetime_utils import local_today

TODAY = date(2024, 3, 13)


def days_ago(*offsets):
    return [TODAY - timedelta(days=n) for n in offsets]


def test_empty_history():
    assert calculate_streak([], TODAY) == (0, 0)


def test_completed_today_only():
    assert calculate_streak(days_ago(0), TODAY) == (1, 1)


def test_completed_yesterday_only_still_counts():
    assert calculate_streak(days_ago(1), TODAY) == (1, 1)


def test_today_and_yesterday():
    assert calculate_streak(days_ago(0, 1), TODAY) == (2, 2)


def test_current_streak_is_fixed_after_second_entry():
    # three consecutive days: the run is measured fully for the longest
    # streak, but the current streak stops growing after the second entry
    assert calculate_streak(days_ago(0, 1, 2), TODAY) == (2, 3)
    assert calculate_streak(days_ago(1, 2, 3, 4), TODAY) == (2, 4)


def test_gap_then_older_run():
    assert calculate_streak(days_ago(0, 1, 4, 5, 6), TODAY) == (2, 3)


def test_stale_single_entry_counts_nothing():
    assert calculate_streak(days_ago(3), TODAY) == (0, 0)


def test_stale_head_undercounts_following_run():
    assert calculate_streak(days_ago(3, 4), TODAY) == (1, 1)
    assert calculate_streak(days_ago(3, 4, 5), TODAY) == (1, 2)


def test_stale_head_then_separate_run():
    assert calculate_streak(days_ago(3, 7, 8, 9), TODAY) == (0, 3)


def test_input_order_does_not_matter():
    dates = days_ago(5, 0, 6, 1, 4)
    assert calculate_streak(dates, TODAY) == calculate_streak(sorted(dates), TODAY)


def test_accepts_date_strings():
    assert calculate_streak(["2024-03-12", "2024-03-13"], TODAY) == (2, 2)


def test_duplicate_dates_restart_run():
    assert calculate_streak(days_ago(0, 0), TODAY) == (1, 1)


def test_future_date_counts_as_current():
    assert calculate_streak([TODAY + timedelta(days=1)], TODAY) == (1, 1)


def test_defaults_to_configured_today():
    assert calculate_streak([local_today(settings.TIMEZONE)]) == (1, 1)


def test_default_today_follows_timezone_setting(monkeypatch):
    monkeypatch.setattr(settings, "TIMEZONE", "Etc/GMT+12")
    yesterday = local_today("Etc/GMT+12") - timedelta(days=1)
    assert calculate_streak([yesterday]) == (1, 1)

    # UTC+14 is 26 hours ahead, so the same date is at least two days old
    monkeypatch.setattr(settings, "TIMEZONE", "Pacific/Kiritimati")
    assert calculate_streak([yesterday]) == (0, 0)


def test_repeated_calls_are_identical():
    dates = days_ago(0, 1, 3, 4, 5)
    snapshot = list(dates)
    first = calculate_streak(dates, TODAY)
    assert calculate_streak(dates, TODAY) == first
    assert dates == snapshot


@pytest.mark.parametrize("seed", range(25))
def test_longest_never_below_current(seed):
    rng = random.Random(seed)
    offsets = rng.sample(range(60), rng.randint(0, 40))
    current, longest = calculate_streak(days_ago(*offsets), TODAY)
    assert 0 <= current <= longest
