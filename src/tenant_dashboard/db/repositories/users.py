from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_dashboard.db.models import User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: uuid.UUID) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.strip().lower())
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def create(self, *, email: str) -> User:
        user = User(email=email.strip().lower())
        self._session.add(user)
        await self._session.flush()
        return user

    async def get_or_create(self, *, email: str) -> User:
        return await self.get_by_email(email) or await self.create(email=email)
