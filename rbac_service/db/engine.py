"""
Database Engine & Session Management
=============================================================================
CONCEPT: Async SQLAlchemy with Connection Pooling

  1. Engine — the connection factory. Creates and manages DB connections.
  2. Session — a unit of work. Groups queries into one transaction.
  3. Connection Pool — reuses DB connections instead of opening one per
     request (a new TCP + auth handshake to PostgreSQL costs milliseconds,
     a pooled connection costs microseconds).
  4. Async — the asyncpg driver keeps the event loop free while a query is
     in flight, so one worker can serve other sessions meanwhile.

SQLITE:
  SQLite (through aiosqlite) is supported for local runs and tests. It does
  NOT enforce foreign keys unless asked to on every connection, so
  create_engine() turns them on. Without that, the roles.permission_id
  RESTRICT constraint would silently do nothing.
=============================================================================
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from rbac_service.config import settings


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, with pooling for servers and FK enforcement for SQLite."""
    if database_url.startswith("sqlite"):
        sqlite_engine = create_async_engine(database_url, echo=echo)

        @event.listens_for(sqlite_engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=10,                 # Persistent connections kept ready
        max_overflow=5,               # Extra connections under load
        pool_pre_ping=True,           # Verify connections before use
        pool_recycle=3600,            # Recycle connections every hour
    )


def create_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `bind`.

    expire_on_commit=False keeps ORM objects readable after commit; the store
    converts them to dicts right after committing.
    """
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = create_engine(settings.database_url, echo=settings.debug and settings.log_level.upper() == "DEBUG")
async_session_maker = create_session_maker(engine)


class Base(DeclarativeBase):
    pass
