from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class AccessType(StrEnum):
    READ = "Read"
    CREATE = "Create"
    UPDATE = "Update"
    UPSERT = "Upsert"


ID_FIELD = "Id"


@dataclass(slots=True)
class Record:
    """A typed record: an object-type name plus its field values."""

    object_type: str
    fields: dict[str, Any] = field(default_factory=dict)

    def populated_fields(self) -> list[str]:
        return [name for name, value in self.fields.items() if value is not None]

    def copy(self) -> Record:
        return Record(object_type=self.object_type, fields=dict(self.fields))


@dataclass(slots=True)
class AccessDecision:
    """Outcome of stripping a record set for one access type.

    ``removed_fields`` only holds objects that lost at least one field. An
    object missing from it had nothing removed; it does not imply the object
    itself is accessible.
    """

    records: list[Record] = field(default_factory=list)
    removed_fields: dict[str, set[str]] = field(default_factory=dict)

    def has_removals(self) -> bool:
        return any(self.removed_fields.values())


@dataclass(slots=True)
class FieldDescription:
    name: str
    label: str
    is_accessible: bool
    is_createable: bool
    is_updateable: bool


@dataclass(slots=True)
class SchemaDescription:
    name: str
    label: str
    is_accessible: bool
    is_createable: bool
    is_updateable: bool
    fields: dict[str, FieldDescription] | None = field(default_factory=dict)
