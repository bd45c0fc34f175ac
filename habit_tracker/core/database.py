from contextlib import asynccontextmanager
from typing import AsyncIterator
import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from habit_tracker.models import Base

logger = logging.getLogger(__name__)


def _setup_sqlite(engine: AsyncEngine):
    # pysqlite defers BEGIN, which breaks SAVEPOINT; emit it ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Database:
    """Store client owning the engine and session factory.

    Constructed once at startup and handed to request handlers and the
    scheduled job. ``open()`` must be awaited before ``session()`` is used.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    async def open(self, create_schema: bool = True):
        if self.engine is not None:
            return
        engine_kwargs = {"echo": self.echo, "pool_pre_ping": True}
        if not self.url.startswith("sqlite"):
            engine_kwargs.update(pool_size=5, max_overflow=2, pool_recycle=3600)
        self.engine = create_async_engine(self.url, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            _setup_sqlite(self.engine)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        if create_schema:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        logger.info("Database opened: %s", self.engine.url.render_as_string(hide_password=True))

    async def close(self):
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        logger.info("Database closed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session, committing on success and rolling back on error."""
        if self.session_factory is None:
            raise RuntimeError("Database is not open")
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
