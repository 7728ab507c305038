from __future__ import annotations

from accessor.platform.security.schema import FieldDefinition, ObjectDefinition, ObjectRegistry


NAME_FIELD = FieldDefinition(name="Name", label="Name", column="name")
VALUE_FIELD = FieldDefinition(name="Value__c", label="Value", column="value")

PROTECTED_SETTING = ObjectDefinition(
    name="ProtectedSetting__c",
    label="Protected Setting",
    fields=(
        NAME_FIELD,
        FieldDefinition(name="SetupOwnerId", label="Location", column="setup_owner_id"),
        VALUE_FIELD,
    ),
)

PROTECTED_LIST_SETTING = ObjectDefinition(
    name="ProtectedListSetting__c",
    label="Protected List Setting",
    fields=(NAME_FIELD, VALUE_FIELD),
)

PROTECTED_OBJECT = ObjectDefinition(
    name="ProtectedObject__c",
    label="Protected Object",
    fields=(NAME_FIELD, VALUE_FIELD),
)

protected_registry = ObjectRegistry([PROTECTED_SETTING, PROTECTED_LIST_SETTING, PROTECTED_OBJECT])
