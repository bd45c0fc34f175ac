from datetime import timedelta

from habit_tracker.config import Settings
from habit_tracker.core.database import Database
from habit_tracker.core.scheduler import DailyResetScheduler
from habit_tracker.repositories.habit_repo import HabitRepository
from habit_tracker.services.habit_service import HabitService
from habit_tracker.services.reset_service import DailyResetService

from tests.conftest import TODAY


async def test_reset_creates_missing_logs_only(session):
    habits = HabitService(session, lambda: TODAY)
    read = await habits.create_habit("Read", "evening", "daily")
    walk = await habits.create_habit("Walk", "morning", "weekly", week_days=[1, 3])
    await habits.set_log(read.id, TODAY, True)

    created = await DailyResetService(session, lambda: TODAY).run()
    assert created == 1

    repo = HabitRepository(session)
    walk_log = await repo.get_log(walk.id, TODAY)
    assert walk_log.completed is False
    assert walk_log.completed_at is None
    assert (await repo.get_log(read.id, TODAY)).completed is True


async def test_reset_is_idempotent(session):
    habits = HabitService(session, lambda: TODAY)
    await habits.create_habit("Read", "evening", "daily")
    await habits.create_habit("Walk", "morning", "daily")

    reset = DailyResetService(session, lambda: TODAY)
    assert await reset.run() == 2
    assert await reset.run() == 0
    assert len(await habits.get_today_logs()) == 2


async def test_reset_for_explicit_day(session):
    habits = HabitService(session, lambda: TODAY)
    habit = await habits.create_habit("Read", "evening", "daily")
    tomorrow = TODAY + timedelta(days=1)

    assert await DailyResetService(session).run(tomorrow) == 1
    assert await HabitRepository(session).has_log(habit.id, tomorrow)


async def test_duplicate_insert_is_absorbed(session):
    habit = await HabitService(session).create_habit("Read", "evening", "daily")
    repo = HabitRepository(session)

    assert await repo.create_incomplete_log(habit.id, TODAY) is True
    assert await repo.create_incomplete_log(habit.id, TODAY) is False
    assert await repo.has_log(habit.id, TODAY)


async def test_scheduler_tick_runs_reset(db_url):
    database = Database(db_url)
    await database.open()
    try:
        async with database.session() as session:
            await HabitService(session).create_habit("Read", "evening", "daily")

        scheduler = DailyResetScheduler(database, Settings(DATABASE_URL=db_url))
        assert await scheduler.reset_tick(TODAY) == 1
        assert await scheduler.reset_tick(TODAY) == 0
    finally:
        await database.close()


async def test_scheduler_tick_survives_closed_database(db_url):
    scheduler = DailyResetScheduler(Database(db_url), Settings(DATABASE_URL=db_url))
    assert await scheduler.reset_tick(TODAY) == 0


def test_scheduler_registers_cron_job(db_url):
    settings = Settings(DATABASE_URL=db_url, RESET_HOUR=0, RESET_MINUTE=5)
    scheduler = DailyResetScheduler(Database(db_url), settings)
    scheduler.scheduler.add_job = lambda *args, **kwargs: captured.update(args=args, kwargs=kwargs)
    scheduler.scheduler.start = lambda: None
    captured = {}

    scheduler.start()

    assert captured["args"][1] == "cron"
    assert captured["kwargs"]["id"] == "daily_log_reset"
    assert captured["kwargs"]["hour"] == 0
    assert captured["kwargs"]["minute"] == 5
