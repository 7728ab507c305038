from __future__ import annotations

from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from accessor.authz.models import Permission, Role, RolePermission, UserRole
from accessor.core.database import Base
from accessor.platform.security.context import AuthContext
from accessor.platform.security.errors import NoAccessError, UnknownObjectError
from accessor.platform.security.policies import (
    DbPolicyBackend,
    FieldAction,
    InMemoryPolicyBackend,
    ObjectAction,
    set_policy_backend,
)
from accessor.platform.security.schema import PolicySchemaService
from accessor.platform.security.stripping import PolicyStrippingBackend
from accessor.platform.security.types import AccessType, Record
from accessor.protected.objects import protected_registry


@pytest.fixture(autouse=True)
def reset_policy_backend() -> Generator[None, None, None]:
    set_policy_backend(InMemoryPolicyBackend(default_allow=True))
    yield
    set_policy_backend(InMemoryPolicyBackend(default_allow=True))


def _object_record() -> Record:
    return Record(
        object_type="ProtectedObject__c",
        fields={"Id": "a02", "Name": "Row 1", "Value__c": "2026-10-19T09:00:00+00:00", "Notes__c": None},
    )


def test_default_allow_strips_nothing_and_returns_copies() -> None:
    record = _object_record()

    decision = PolicyStrippingBackend(AuthContext(user_id="user-1")).strip(AccessType.UPSERT, [record])

    assert decision.removed_fields == {}
    assert not decision.has_removals()
    assert decision.records[0] == record
    assert decision.records[0] is not record


def test_strip_removes_only_populated_inaccessible_fields() -> None:
    set_policy_backend(InMemoryPolicyBackend(default_allow=False))
    ctx = AuthContext(user_id="user-2", permissions=["ProtectedObject__c.read", "ProtectedObject__c.field.read:Name"])
    record = _object_record()

    decision = PolicyStrippingBackend(ctx).strip(AccessType.READ, [record])

    assert decision.removed_fields == {"ProtectedObject__c": {"Value__c"}}
    assert decision.records[0].fields == {"Id": "a02", "Name": "Row 1", "Notes__c": None}
    assert "Value__c" in record.fields


def test_strip_raises_without_object_access() -> None:
    set_policy_backend(InMemoryPolicyBackend(default_allow=False))
    ctx = AuthContext(user_id="user-3", permissions=["ProtectedObject__c.field.read:*"])

    with pytest.raises(NoAccessError) as exc_info:
        PolicyStrippingBackend(ctx).strip(AccessType.READ, [_object_record()])

    assert exc_info.value.object_name == "ProtectedObject__c"
    assert exc_info.value.access_type == "Read"
    assert str(exc_info.value) == '"Read" access denied on Object: "ProtectedObject__c"'


def test_upsert_requires_create_and_update() -> None:
    backend = InMemoryPolicyBackend(default_allow=False)
    create_only = AuthContext(user_id="user-4", permissions=["ProtectedObject__c.create", "ProtectedObject__c.field.create:*"])

    with pytest.raises(NoAccessError):
        PolicyStrippingBackend(create_only, backend).strip(AccessType.UPSERT, [_object_record()])

    both = AuthContext(
        user_id="user-5",
        permissions=[
            "ProtectedObject__c.create",
            "ProtectedObject__c.update",
            "ProtectedObject__c.field.create:*",
            "ProtectedObject__c.field.update:Name",
        ],
    )
    decision = PolicyStrippingBackend(both, backend).strip(AccessType.UPSERT, [_object_record()])

    assert decision.removed_fields == {"ProtectedObject__c": {"Value__c"}}


def test_role_grants_and_wildcards() -> None:
    backend = InMemoryPolicyBackend({"SettingsAdmin": {"ProtectedSetting__c.*"}, "Root": {"*"}}, default_allow=False)
    admin = AuthContext(user_id="user-6", roles=["SettingsAdmin"])
    root = AuthContext(user_id="user-7", roles=["Root"])

    assert backend.is_object_allowed("ProtectedSetting__c", ObjectAction.UPDATE, admin)
    assert backend.is_field_allowed("ProtectedSetting__c", "Value__c", FieldAction.UPDATE, admin)
    assert not backend.is_object_allowed("ProtectedObject__c", ObjectAction.READ, admin)
    assert backend.is_field_allowed("ProtectedObject__c", "Value__c", FieldAction.CREATE, root)


def test_schema_service_describes_flags_for_caller() -> None:
    backend = InMemoryPolicyBackend(default_allow=False)
    ctx = AuthContext(
        user_id="user-8",
        permissions=[
            "ProtectedSetting__c.read",
            "ProtectedSetting__c.field.read:*",
            "ProtectedSetting__c.field.update:Value__c",
        ],
    )

    description = PolicySchemaService(ctx, protected_registry, backend).describe("ProtectedSetting__c")

    assert description.label == "Protected Setting"
    assert (description.is_accessible, description.is_createable, description.is_updateable) == (True, False, False)
    assert list(description.fields) == ["Name", "SetupOwnerId", "Value__c"]
    value = description.fields["Value__c"]
    assert (value.label, value.is_accessible, value.is_createable, value.is_updateable) == ("Value", True, False, True)
    assert description.fields["SetupOwnerId"].label == "Location"


def test_schema_service_rejects_unknown_objects_and_keeps_registry_order() -> None:
    service = PolicySchemaService(AuthContext(user_id="user-9"), protected_registry)

    with pytest.raises(UnknownObjectError):
        service.describe("Missing__c")

    assert [item.name for item in service.describe_all()] == [
        "ProtectedSetting__c",
        "ProtectedListSetting__c",
        "ProtectedObject__c",
    ]


def _seed_role_with_permissions(
    session: Session,
    *,
    user_id: str,
    role_name: str,
    permissions: list[tuple[str, str, str | None, str]],
) -> None:
    role = Role(name=role_name, is_system=False)
    session.add(role)
    session.flush()

    for object_name, action, field, effect in permissions:
        permission = Permission(object_name=object_name, action=action, field=field, effect=effect)
        session.add(permission)
        session.flush()
        session.add(RolePermission(role_id=role.id, permission_id=permission.id))

    session.add(UserRole(user_id=user_id, role_id=role.id))
    session.commit()


def test_db_policy_precedence_and_caching() -> None:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as session:
        _seed_role_with_permissions(
            session,
            user_id="user-a",
            role_name="SettingsEditor",
            permissions=[
                ("ProtectedObject__c", "read", None, "allow"),
                ("ProtectedObject__c", "update", None, "allow"),
                ("ProtectedObject__c", "create", None, "deny"),
                ("*", "create", None, "allow"),
                ("ProtectedObject__c", "field.read", "*", "allow"),
                ("ProtectedObject__c", "field.update", "*", "allow"),
                ("ProtectedObject__c", "field.update", "Value__c", "deny"),
            ],
        )

    backend = DbPolicyBackend(SessionLocal, default_allow=True)
    ctx = AuthContext(user_id="user-a")

    assert backend.is_object_allowed("ProtectedObject__c", ObjectAction.READ, ctx)
    assert backend.is_object_allowed("ProtectedObject__c", ObjectAction.UPDATE, ctx)
    assert not backend.is_object_allowed("ProtectedObject__c", ObjectAction.CREATE, ctx)
    assert backend.is_object_allowed("ProtectedSetting__c", ObjectAction.CREATE, ctx)
    assert backend.is_field_allowed("ProtectedObject__c", "Value__c", FieldAction.READ, ctx)
    assert backend.is_field_allowed("ProtectedObject__c", "Name", FieldAction.UPDATE, ctx)
    assert not backend.is_field_allowed("ProtectedObject__c", "Value__c", FieldAction.UPDATE, ctx)
    assert not backend.is_field_allowed("ProtectedObject__c", "Name", FieldAction.CREATE, ctx)

    assert ctx.cached(DbPolicyBackend.CACHE_KEY) is not None
    assert ctx.roles == ["SettingsEditor"]

    decision = PolicyStrippingBackend(ctx, backend).strip(AccessType.UPDATE, [_object_record()])
    assert decision.removed_fields == {"ProtectedObject__c": {"Value__c"}}

    stranger = AuthContext(user_id="user-without-roles")
    assert backend.is_object_allowed("ProtectedObject__c", ObjectAction.CREATE, stranger)
    assert not DbPolicyBackend(SessionLocal, default_allow=False).is_object_allowed(
        "ProtectedObject__c", ObjectAction.READ, AuthContext(user_id="user-without-roles")
    )
