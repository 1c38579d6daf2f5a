"""
Database configuration and session management
Uses SQLAlchemy with async support
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from contextlib import asynccontextmanager
from typing import AsyncIterator
import logging

from .config import Settings, to_async_url

logger = logging.getLogger(__name__)


def _configure_sqlite(engine: AsyncEngine) -> None:
    """
    Let SQLAlchemy emit BEGIN itself so every transaction takes the
    write lock up front and SAVEPOINT works under aiosqlite.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """
    Owns the engine and session factory for the lifetime of the process.
    Built once at startup, handed to whoever needs storage, disposed on shutdown.
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 40,
        pool_timeout: int = 30,
        sqlite_busy_timeout: float = 30.0,
    ):
        self.url = to_async_url(url)
        self.is_sqlite = self.url.startswith("sqlite")

        if self.is_sqlite:
            # SQLite doesn't support connection pooling parameters
            self.engine = create_async_engine(
                self.url,
                echo=echo,
                poolclass=NullPool,
                connect_args={"timeout": sqlite_busy_timeout},
            )
            _configure_sqlite(self.engine)
        else:
            self.engine = create_async_engine(
                self.url,
                echo=echo,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_pre_ping=True,  # Verify connections before use
            )

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
            sqlite_busy_timeout=settings.SQLITE_BUSY_TIMEOUT,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Session scope for request handlers
        Commits on success, rolls back on any error
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                await session.rollback()
                raise

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        One unit of work: everything done with the yielded session
        commits together on exit or rolls back on any exception,
        including cancellation of the awaiting task.
        """
        async with self.session_factory() as session:
            async with session.begin():
                yield session

    async def create_all(self) -> None:
        """Initialize database tables"""
        from orderengine.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

    async def dispose(self) -> None:
        """Close database connections"""
        await self.engine.dispose()
        logger.info("Database connections closed")

