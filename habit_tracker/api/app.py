from contextlib import asynccontextmanager
from datetime import date
from typing import Annotated, Literal
import logging

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from habit_tracker.config import Settings, settings as default_settings
from habit_tracker.core.database import Database
from habit_tracker.core.scheduler import DailyResetScheduler
from habit_tracker.services.habit_service import HabitService
from habit_tracker.services.view_service import ViewService
from habit_tracker.utils.datetime_utils import local_today


TimeOfDay = Literal["morning", "afternoon", "evening", "night", "anytime"]
Frequency = Literal["daily", "weekly"]
WeekDay = Annotated[int, Field(ge=0, le=6)]
REMINDER_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

# columns that may not be set to null through a partial update
NON_NULLABLE_FIELDS = {"name", "time_of_day", "frequency", "week_days", "reminder_enabled"}


class CamelPayload(BaseModel):
    model_config = {"populate_by_name": True}


class HabitCreatePayload(CamelPayload):
    name: str = Field(min_length=1, max_length=255)
    time_of_day: TimeOfDay = Field(alias="timeOfDay")
    frequency: Frequency
    week_days: list[WeekDay] = Field(default_factory=list, alias="weekDays")
    reminder_enabled: bool = Field(default=False, alias="reminderEnabled")
    reminder_time: str | None = Field(
        default=None, alias="reminderTime", pattern=REMINDER_TIME_PATTERN
    )


class HabitUpdatePayload(CamelPayload):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    time_of_day: TimeOfDay | None = Field(default=None, alias="timeOfDay")
    frequency: Frequency | None = None
    week_days: list[WeekDay] | None = Field(default=None, alias="weekDays")
    reminder_enabled: bool | None = Field(default=None, alias="reminderEnabled")
    reminder_time: str | None = Field(
        default=None, alias="reminderTime", pattern=REMINDER_TIME_PATTERN
    )


class LogPayload(CamelPayload):
    habit_id: int = Field(alias="habitId")
    log_date: date = Field(alias="date")
    completed: bool = False


def _serialize_habit(habit) -> dict:
    return {
        "id": habit.id,
        "name": habit.name,
        "timeOfDay": habit.time_of_day,
        "frequency": habit.frequency,
        "weekDays": habit.week_days or [],
        "createdAt": habit.created_at.isoformat() if habit.created_at else None,
        "currentStreak": habit.current_streak,
        "longestStreak": habit.longest_streak,
        "reminderEnabled": habit.reminder_enabled,
        "reminderTime": habit.reminder_time,
    }


def _serialize_log(log) -> dict:
    return {
        "id": log.id,
        "habitId": log.habit_id,
        "date": log.log_date.isoformat(),
        "completed": log.completed,
        "completedAt": log.completed_at.isoformat() if log.completed_at else None,
        "habit": _serialize_habit(log.habit) if log.habit else None,
    }


def _serialize_daily_view(view: dict) -> dict:
    return {
        "date": view["date"].isoformat(),
        "habits": [
            {
                "habit": _serialize_habit(row["habit"]),
                "scheduled": row["scheduled"],
                "completed": row["completed"],
            }
            for row in view["habits"]
        ],
    }


def _serialize_weekly_view(view: dict) -> dict:
    return {
        "weekStart": view["week_start"].isoformat(),
        "weekEnd": view["week_end"].isoformat(),
        "days": [d.isoformat() for d in view["days"]],
        "habits": [
            {
                "habit": _serialize_habit(row["habit"]),
                "completedCount": row["completed_count"],
                "days": [
                    {
                        "date": cell["date"].isoformat(),
                        "scheduled": cell["scheduled"],
                        "completed": cell["completed"],
                    }
                    for cell in row["days"]
                ],
            }
            for row in view["habits"]
        ],
    }


logger = logging.getLogger(__name__)
router = APIRouter()


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_today(request: Request) -> date:
    return request.app.state.today()


@router.get("/health")
async def health():
    return {"ok": True}


@router.get("/api/habits")
async def list_habits(db: Database = Depends(get_database)):
    async with db.session() as session:
        habits = await HabitService(session).list_habits()
        return [_serialize_habit(h) for h in habits]


@router.post("/api/habits", status_code=201)
async def create_habit(payload: HabitCreatePayload, db: Database = Depends(get_database)):
    async with db.session() as session:
        habit = await HabitService(session).create_habit(**payload.model_dump())
        return _serialize_habit(habit)


@router.put("/api/habits/{habit_id}")
async def update_habit(
    habit_id: int,
    payload: HabitUpdatePayload,
    db: Database = Depends(get_database),
):
    changes = {
        k: v
        for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k not in NON_NULLABLE_FIELDS
    }
    async with db.session() as session:
        habit = await HabitService(session).update_habit(habit_id, **changes)
        if not habit:
            raise HTTPException(status_code=404, detail="Habit not found")
        return _serialize_habit(habit)


@router.delete("/api/habits/{habit_id}")
async def delete_habit(habit_id: int, db: Database = Depends(get_database)):
    async with db.session() as session:
        if not await HabitService(session).delete_habit(habit_id):
            raise HTTPException(status_code=404, detail="Habit not found")
        return {"message": "Habit deleted"}


@router.get("/api/habits/{habit_id}/stats")
async def habit_stats(
    habit_id: int,
    db: Database = Depends(get_database),
    today: date = Depends(get_today),
):
    async with db.session() as session:
        stats = await HabitService(session, lambda: today).get_stats(habit_id)
        if not stats:
            raise HTTPException(status_code=404, detail="Habit not found")
        return {
            "totalCompleted": stats["total_completed"],
            "currentStreak": stats["current_streak"],
            "longestStreak": stats["longest_streak"],
            "habit": _serialize_habit(stats["habit"]),
        }


@router.get("/api/logs")
async def list_logs(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    db: Database = Depends(get_database),
):
    async with db.session() as session:
        logs = await HabitService(session).get_logs(start_date, end_date)
        return [_serialize_log(log) for log in logs]


@router.get("/api/logs/today")
async def today_logs(
    db: Database = Depends(get_database),
    today: date = Depends(get_today),
):
    async with db.session() as session:
        logs = await HabitService(session, lambda: today).get_today_logs()
        return [_serialize_log(log) for log in logs]


@router.post("/api/logs")
async def set_log(
    payload: LogPayload,
    db: Database = Depends(get_database),
    today: date = Depends(get_today),
):
    async with db.session() as session:
        log = await HabitService(session, lambda: today).set_log(
            payload.habit_id, payload.log_date, payload.completed
        )
        if not log:
            raise HTTPException(status_code=404, detail="Habit not found")
        return _serialize_log(log)


@router.get("/api/views/daily")
async def daily_view(
    day: date | None = Query(default=None, alias="date"),
    db: Database = Depends(get_database),
    today: date = Depends(get_today),
):
    async with db.session() as session:
        view = await ViewService(session, lambda: today).daily_view(day)
        return _serialize_daily_view(view)


@router.get("/api/views/weekly")
async def weekly_view(
    day: date | None = Query(default=None, alias="date"),
    db: Database = Depends(get_database),
    today: date = Depends(get_today),
):
    async with db.session() as session:
        view = await ViewService(session, lambda: today).weekly_view(day)
        return _serialize_weekly_view(view)


async def integrity_error_handler(request, exc: IntegrityError):
    logger.warning("Constraint violation on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=409, content={"detail": "Conflicting habit data"})


async def sqlalchemy_error_handler(request, exc: SQLAlchemyError):
    logger.error("DB error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Database unavailable. Check DATABASE_URL."},
    )


def create_app(
    app_settings: Settings | None = None,
    database: Database | None = None,
    start_scheduler: bool | None = None,
) -> FastAPI:
    app_settings = app_settings or default_settings
    database = database or Database(app_settings.DATABASE_URL, echo=app_settings.DB_ECHO)
    if start_scheduler is None:
        start_scheduler = app_settings.SCHEDULER_ENABLED

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await database.open()
        if start_scheduler:
            app.state.scheduler.start()
        try:
            yield
        finally:
            app.state.scheduler.shutdown()
            await database.close()

    app = FastAPI(title="Habit Tracker API", version="1.0.0", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.database = database
    app.state.today = lambda: local_today(app_settings.TIMEZONE)
    app.state.scheduler = DailyResetScheduler(database, app_settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.include_router(router)

    return app


app = create_app()
