"""Shared fixtures: a fake-backed access engine and a seeded app with an HTTP client."""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from support import TENANT_A, TENANT_B, EngineParts, Seeded, build_engine, make_settings
from tenant_dashboard.api.app import create_app
from tenant_dashboard.db.repositories.memberships import MembershipRepo
from tenant_dashboard.db.repositories.tenants import TenantRepo
from tenant_dashboard.db.repositories.users import UserRepo


@pytest.fixture
def parts() -> EngineParts:
    return build_engine()


@pytest_asyncio.fixture
async def seeded(tmp_path: Path) -> AsyncIterator[Seeded]:
    settings = make_settings(tmp_path)
    app = create_app(settings=settings)

    # httpx ASGITransport does not manage lifespan; do it explicitly.
    await app.router.startup()
    try:
        async with app.state.sessionmaker() as session:
            user = await UserRepo(session).create(email="ana@example.com")
            other = await UserRepo(session).create(email="ben@example.com")
            tenant_a = await TenantRepo(session).create(
                name="Acme", api_key="tenant_key_a", tenant_id=uuid.UUID(TENANT_A)
            )
            await TenantRepo(session).create(name="Globex", tenant_id=uuid.UUID(TENANT_B))
            await MembershipRepo(session).grant(user_id=user.id, tenant_id=tenant_a.tenant_id)
            await session.commit()

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield Seeded(
                app=app,
                client=client,
                settings=settings,
                user_id=str(user.id),
                other_user_id=str(other.id),
                tenant_a=TENANT_A,
                tenant_b=TENANT_B,
                api_key_a="tenant_key_a",
            )
    finally:
        await app.router.shutdown()
