from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .base import Base
from ..utils.logging import get_logger

logger = get_logger(__name__)


def _configure_sqlite(engine: AsyncEngine) -> None:
    # The sqlite driver defers BEGIN on its own, which breaks SAVEPOINT.
    # Let SQLAlchemy emit BEGIN, and turn foreign key checks on.
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
    """
    Owns the async engine and the session factory.

    One instance is created by the process entry point (the FastAPI lifespan
    or a test fixture), connected once, and handed to whoever needs sessions.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    async def connect(self) -> None:
        if self.engine is not None:
            return

        self.engine = create_async_engine(self.url, echo=self.echo)
        if self.engine.dialect.name == "sqlite":
            _configure_sqlite(self.engine)

        self.session_factory = async_sessionmaker(bind=self.engine, class_=AsyncSession, expire_on_commit=False)
        logger.info("Database engine created for %s", self.engine.url.render_as_string(hide_password=True))

    async def disconnect(self) -> None:
        if self.engine is None:
            return

        await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        logger.info("Database engine disposed")

    async def init_db(self) -> None:
        # Register every model on the metadata before creating tables
        from .. import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self.session_factory is None:
            raise RuntimeError("Database is not connected")

        async with self.session_factory() as db:
            yield db
