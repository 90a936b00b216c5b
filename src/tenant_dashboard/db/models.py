"""
tenant_dashboard.db.models

Persistence schema for the dashboard service.

Responsibilities:
- Define ORM models for the stores the access layer consults:
  - User: session subjects
  - Tenant: customer namespaces, each with one machine API key
  - UserTenant: membership facts (user x tenant)
- Define tenant-scoped application data:
  - TenantSetting: key/value settings per tenant
  - AuditEvent: append-only trail of uploads and settings changes
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, ForeignKey, Index, String, Text, UniqueConstraint, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenant_dashboard.db.base import Base


def _utcnow() -> datetime:
    # Persist naive UTC timestamps for simplicity.
    return datetime.utcnow()


def generate_api_key() -> str:
    return "tenant_" + secrets.token_hex(24)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    memberships: Mapped[list[UserTenant]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


class Tenant(Base):
    __tablename__ = "tenants"

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    api_key: Mapped[str] = mapped_column(
        String(128), nullable=False, unique=True, default=generate_api_key
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    memberships: Mapped[list[UserTenant]] = relationship(
        back_populates="tenant", cascade="all, delete-orphan"
    )


class UserTenant(Base):
    __tablename__ = "user_tenants"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("tenants.tenant_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    user: Mapped[User] = relationship(back_populates="memberships")
    tenant: Mapped[Tenant] = relationship(back_populates="memberships")

    __table_args__ = (UniqueConstraint("user_id", "tenant_id", name="uq_user_tenants_pair"),)


class TenantSetting(Base):
    __tablename__ = "settings"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True),
        ForeignKey("tenants.tenant_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    key: Mapped[str] = mapped_column(String(128), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (UniqueConstraint("tenant_id", "key", name="uq_settings_tenant_key"),)


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(SAUuid(as_uuid=True), nullable=False, index=True)

    actor: Mapped[str] = mapped_column(String(256), nullable=False)  # user id / api key identity
    event_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)

    __table_args__ = (Index("ix_audit_tenant_created", "tenant_id", "created_at"),)


# --- Module Notes -----------------------------------------------------------
# API keys are unique so the key -> tenant lookup is an exact, single-row match.
