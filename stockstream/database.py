# stockstream/database.py

from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import declarative_base

from stockstream.core.config import get_settings

Base = declarative_base()


def build_engine(
    database_url: str,
    lock_timeout: float = 5.0,
    pool_size: int = 10,
    max_overflow: int = 20,
) -> AsyncEngine:
    """
    Create the async engine for the inventory database.

    PostgreSQL gets a regular connection pool; row locks come from
    SELECT ... FOR UPDATE. SQLite (development / tests) has no row locks, so
    every transaction is opened with BEGIN IMMEDIATE, which takes the database
    write lock up front, and the driver busy timeout doubles as the lock wait.
    """
    # Convert postgresql:// to postgresql+asyncpg:// for async support
    if database_url.startswith('postgresql://'):
        database_url = database_url.replace('postgresql://', 'postgresql+asyncpg://', 1)

    if make_url(database_url).get_backend_name() == "sqlite":
        engine = create_async_engine(
            database_url,
            echo=False,
            connect_args={"timeout": lock_timeout},
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _disable_driver_begin(dbapi_connection, connection_record):
            # Let SQLAlchemy emit BEGIN itself instead of the sqlite3 module
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_async_engine(
        database_url,
        echo=False,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


settings = get_settings()

engine = build_engine(
    settings.DATABASE_URL,
    lock_timeout=settings.DATABASE_LOCK_TIMEOUT_SECONDS,
    pool_size=settings.DATABASE_POOL_SIZE,
    max_overflow=settings.DATABASE_MAX_OVERFLOW,
)

async_session = build_session_factory(engine)


@asynccontextmanager
async def get_session() -> AsyncSession:
    session = async_session()
    try:
        yield session
    finally:
        await session.close()
