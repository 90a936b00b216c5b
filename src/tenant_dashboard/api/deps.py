"""
tenant_dashboard.api.deps

FastAPI dependency wiring for the API layer.

Everything shared per app (settings, sessionmaker, access engine) hangs off
`app.state`, populated by `create_app` and its startup hook; this module is
the one place that reads it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenant_dashboard.settings import Settings


def app_state(request: Request, name: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(f"app.state.{name} is not initialized; was the startup hook run?")
    return value


def settings_dep(request: Request) -> Settings:
    # The app's own settings, not get_settings(), so tests can build apps per config.
    return app_state(request, "settings")


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return app_state(request, "sessionmaker")


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Handlers commit explicitly; anything uncommitted is rolled back on close.
    async with session_factory() as session:
        yield session
