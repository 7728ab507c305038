from __future__ import annotations

from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from accessor.platform.security.types import AccessType


class AccessSource(StrEnum):
    HIERARCHY_SETTING = "hierarchy-setting"
    LIST_SETTING = "list-setting"
    CUSTOM_OBJECT = "custom-object"


class AccessCheckRequest(BaseModel):
    access_type: AccessType


class AccessCheckRead(BaseModel):
    object_name: str
    object_label: str
    access_type: AccessType
    record_count: int
    granted: bool


class PopulatedRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    value: str | None
