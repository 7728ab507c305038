from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from accessor.core.database import Base


ORG_DEFAULT_OWNER = "org"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProtectedSetting(Base):
    """Hierarchy setting: one org-wide default row plus optional per-owner overrides."""

    __tablename__ = "accessor_protected_setting"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(80), nullable=False)
    setup_owner_id: Mapped[str] = mapped_column(String(64), nullable=False, default=ORG_DEFAULT_OWNER, index=True)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class ProtectedListSetting(Base):
    """List setting: any number of rows addressed by name."""

    __tablename__ = "accessor_protected_list_setting"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class ProtectedObject(Base):
    __tablename__ = "accessor_protected_object"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(80), nullable=False)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
