from datetime import date

import pytest
from fastapi.testclient import TestClient

from habit_tracker.api.app import create_app
from habit_tracker.config import Settings
from habit_tracker.core.database import Database

TODAY = date(2024, 3, 13)  # a Wednesday


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'habits.db'}"


@pytest.fixture
async def database(db_url):
    db = Database(db_url)
    await db.open()
    yield db
    await db.close()


@pytest.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def client(db_url):
    app = create_app(Settings(DATABASE_URL=db_url), start_scheduler=False)
    app.state.today = lambda: TODAY
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_habit(client):
    def _make(name="Read", time_of_day="evening", frequency="daily", **extra):
        body = {"name": name, "timeOfDay": time_of_day, "frequency": frequency, **extra}
        response = client.post("/api/habits", json=body)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
