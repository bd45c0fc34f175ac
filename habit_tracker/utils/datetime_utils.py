from datetime import datetime, date, timedelta
from zoneinfo import ZoneInfo

from habit_tracker.config import settings

DATE_FORMAT = "%Y-%m-%d"


def local_today(tz: str | ZoneInfo | None = None) -> date:
    if tz is None:
        return date.today()
    if isinstance(tz, str):
        tz = ZoneInfo(tz)
    return datetime.now(tz).date()


def configured_today() -> date:
    return local_today(settings.TIMEZONE)


def parse_date(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, DATE_FORMAT).date()


def sunday_index(d: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % 7


def get_week_bounds(target_date: date | None = None) -> tuple[date, date]:
    target = target_date or date.today()
    week_start = target - timedelta(days=sunday_index(target))
    week_end = week_start + timedelta(days=6)
    return week_start, week_end


def week_dates(target_date: date | None = None) -> list[date]:
    week_start, _ = get_week_bounds(target_date)
    return [week_start + timedelta(days=i) for i in range(7)]
