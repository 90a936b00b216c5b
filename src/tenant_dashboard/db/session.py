"""
tenant_dashboard.db.session

Async SQLAlchemy engine, session factory, and dev/test schema bootstrap.

Responsibilities:
- Create the async engine from settings (SQLite gets foreign keys switched on,
  so deleting a user or tenant also removes its memberships).
- Create the async sessionmaker shared by route handlers and access-control stores.
- Create tables outside production; production runs Alembic migrations.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tenant_dashboard.db import models  # noqa: F401  # register tables on Base.metadata
from tenant_dashboard.db.base import Base
from tenant_dashboard.observability.logging import get_logger
from tenant_dashboard.settings import Settings

log = get_logger(__name__)


def create_engine(settings: Settings) -> AsyncEngine:
    engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: handlers serialize ORM rows after committing.
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("schema_created", tables=sorted(Base.metadata.tables))


# --- Module Notes -----------------------------------------------------------
# Route handlers get sessions via `api.deps.db_session`; access-control stores
# open their own short-lived sessions from the same factory.
