from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from accessor.protected.models import ORG_DEFAULT_OWNER, ProtectedListSetting, ProtectedObject, ProtectedSetting


def timestamp_value() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProtectedDataSeeder:
    """Populates the protected record sources with a timestamp value."""

    def populate_hierarchy_setting(self, session: Session) -> ProtectedSetting:
        setting = session.scalar(select(ProtectedSetting).where(ProtectedSetting.setup_owner_id == ORG_DEFAULT_OWNER))
        if setting is None:
            setting = ProtectedSetting(name="Org Default", setup_owner_id=ORG_DEFAULT_OWNER)
            session.add(setting)
        setting.value = timestamp_value()
        session.commit()
        session.refresh(setting)
        return setting

    def populate_list_setting(self, session: Session, name: str | None = None) -> ProtectedListSetting:
        value = timestamp_value()
        setting = ProtectedListSetting(name=name or f"Setting {value}", value=value)
        session.add(setting)
        session.commit()
        session.refresh(setting)
        return setting

    def populate_custom_object(self, session: Session) -> ProtectedObject:
        value = timestamp_value()
        record = ProtectedObject(name=f"Record {value}", value=value)
        session.add(record)
        session.commit()
        session.refresh(record)
        return record


protected_data_seeder = ProtectedDataSeeder()
