from __future__ import annotations

from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from accessor.core.database import Base
from accessor.platform.security.schema import ObjectDefinition
from accessor.platform.security.types import ID_FIELD, AccessType, Record
from accessor.protected.models import ORG_DEFAULT_OWNER, ProtectedListSetting, ProtectedObject, ProtectedSetting
from accessor.protected.objects import PROTECTED_LIST_SETTING, PROTECTED_OBJECT, PROTECTED_SETTING


class ProtectedRecordRepository:
    """Maps stored rows of one object type to records keyed by field name."""

    model: type[Base]
    definition: ObjectDefinition

    def to_record(self, row: Any) -> Record:
        fields: dict[str, Any] = {ID_FIELD: str(row.id)}
        for item in self.definition.fields:
            fields[item.name] = getattr(row, item.column)
        return Record(object_type=self.definition.name, fields=fields)

    def build_record(self, values: dict[str, Any]) -> Record:
        """Build an unsaved record from column values."""

        fields: dict[str, Any] = {}
        for item in self.definition.fields:
            if item.column in values:
                fields[item.name] = values[item.column]
        return Record(object_type=self.definition.name, fields=fields)

    def select_rows(self) -> Select[Any]:
        return select(self.model).order_by(self.model.created_at.asc())  # type: ignore[attr-defined]

    def list_records(self, session: Session) -> list[Record]:
        return [self.to_record(row) for row in session.scalars(self.select_rows()).all()]

    def records_for(self, session: Session, access_type: AccessType, new_values: dict[str, Any]) -> list[Record]:
        """Records an access check runs against.

        Create and Upsert check a fresh unsaved record; Read and Update check
        what is stored.
        """

        if access_type in {AccessType.CREATE, AccessType.UPSERT}:
            return [self.build_record(new_values)]
        return self.list_records(session)


class ProtectedSettingRepository(ProtectedRecordRepository):
    model = ProtectedSetting
    definition = PROTECTED_SETTING

    def select_rows(self) -> Select[Any]:
        return (
            select(ProtectedSetting)
            .where(ProtectedSetting.setup_owner_id == ORG_DEFAULT_OWNER)
            .order_by(ProtectedSetting.created_at.asc())
            .limit(1)
        )


class ProtectedListSettingRepository(ProtectedRecordRepository):
    model = ProtectedListSetting
    definition = PROTECTED_LIST_SETTING


class ProtectedObjectRepository(ProtectedRecordRepository):
    model = ProtectedObject
    definition = PROTECTED_OBJECT
