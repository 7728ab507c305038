from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from threading import Lock
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from accessor.authz.models import Permission, Role, RolePermission, UserRole
from accessor.core.database import SessionLocal
from accessor.metrics import observe_authz_db_queries_count, observe_authz_policy_cache_hit, observe_authz_policy_cache_miss
from accessor.platform.security.context import AuthContext
from accessor.platform.security.types import AccessType


class ObjectAction(StrEnum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"


class FieldAction(StrEnum):
    READ = "field.read"
    CREATE = "field.create"
    UPDATE = "field.update"


_OBJECT_ACTIONS: dict[AccessType, tuple[ObjectAction, ...]] = {
    AccessType.READ: (ObjectAction.READ,),
    AccessType.CREATE: (ObjectAction.CREATE,),
    AccessType.UPDATE: (ObjectAction.UPDATE,),
    AccessType.UPSERT: (ObjectAction.CREATE, ObjectAction.UPDATE),
}

_FIELD_ACTIONS: dict[AccessType, tuple[FieldAction, ...]] = {
    AccessType.READ: (FieldAction.READ,),
    AccessType.CREATE: (FieldAction.CREATE,),
    AccessType.UPDATE: (FieldAction.UPDATE,),
    AccessType.UPSERT: (FieldAction.CREATE, FieldAction.UPDATE),
}


def object_actions_for(access_type: AccessType) -> tuple[ObjectAction, ...]:
    return _OBJECT_ACTIONS[access_type]


def field_actions_for(access_type: AccessType) -> tuple[FieldAction, ...]:
    return _FIELD_ACTIONS[access_type]


class PolicyBackend(Protocol):
    """Pluggable backend answering object CRUD and field-level permission checks."""

    def is_object_allowed(self, object_name: str, action: ObjectAction, ctx: AuthContext) -> bool:
        ...

    def is_field_allowed(self, object_name: str, field: str, action: FieldAction, ctx: AuthContext) -> bool:
        ...


class InMemoryPolicyBackend:
    """Role + direct-permission policy backend with wildcard support.

    Grants are plain strings: ``<object>.<action>`` for object access and
    ``<object>.field.<action>:<field>`` for field access. ``*``,
    ``<prefix>.*`` and ``<...>:*`` act as wildcards.
    """

    def __init__(self, role_permissions: dict[str, set[str]] | None = None, *, default_allow: bool = True) -> None:
        self._role_permissions = role_permissions or {}
        self._default_allow = default_allow

    def is_object_allowed(self, object_name: str, action: ObjectAction, ctx: AuthContext) -> bool:
        if self._default_allow:
            return True
        return self._has_permission(f"{object_name}.{action.value}", ctx)

    def is_field_allowed(self, object_name: str, field: str, action: FieldAction, ctx: AuthContext) -> bool:
        if self._default_allow:
            return True
        return self._has_permission(f"{object_name}.{action.value}:{field}", ctx)

    def _has_permission(self, required: str, ctx: AuthContext) -> bool:
        grants = set(ctx.permissions)
        for role in ctx.roles:
            grants.update(self._role_permissions.get(role, set()))

        return any(self._matches(grant, required) for grant in grants)

    @staticmethod
    def _matches(grant: str, required: str) -> bool:
        if grant in {"*", required}:
            return True

        if grant.endswith(".*"):
            return required.startswith(grant[:-1])

        if ":" in grant and grant.endswith(":*"):
            return required.startswith(grant[:-1])

        return False


@dataclass(slots=True)
class _DbPermissionRule:
    object_name: str
    action: str
    field: str | None
    effect: str


class DbPolicyBackend:
    """Policy backend that resolves role permissions from the database.

    Deny beats allow. For field rules an explicit field match is decided
    before the ``*`` wildcard is consulted. Grants are loaded once per
    AuthContext.
    """

    CACHE_KEY = "authz.db_policy"

    def __init__(self, session_factory: sessionmaker[Session] | None = None, *, default_allow: bool = True) -> None:
        self._session_factory = session_factory or SessionLocal
        self._default_allow = default_allow

    def is_object_allowed(self, object_name: str, action: ObjectAction, ctx: AuthContext) -> bool:
        grants = self._load_grants(ctx)
        if grants["empty"]:
            return self._default_allow

        return self._evaluate_object_rules(grants["rules"], object_name=object_name, action=action.value) == "allow"

    def is_field_allowed(self, object_name: str, field: str, action: FieldAction, ctx: AuthContext) -> bool:
        grants = self._load_grants(ctx)
        if grants["empty"]:
            return self._default_allow

        decision = self._evaluate_field_rules(grants["rules"], object_name=object_name, action=action.value, field=field)
        return decision == "allow"

    def _load_grants(self, ctx: AuthContext) -> dict[str, Any]:
        cache = ctx.cached(self.CACHE_KEY)
        if isinstance(cache, dict):
            observe_authz_policy_cache_hit()
            return cache

        observe_authz_policy_cache_miss()
        with self._session_factory() as session:
            rows = session.execute(
                select(
                    Role.name,
                    Permission.object_name,
                    Permission.action,
                    Permission.field,
                    Permission.effect,
                )
                .select_from(UserRole)
                .join(Role, UserRole.role_id == Role.id)
                .join(RolePermission, RolePermission.role_id == Role.id)
                .join(Permission, Permission.id == RolePermission.permission_id)
                .where(UserRole.user_id == ctx.user_id)
            ).all()
            observe_authz_db_queries_count(1)

        rules = [
            _DbPermissionRule(
                object_name=str(row.object_name),
                action=str(row.action),
                field=str(row.field) if row.field is not None else None,
                effect=str(row.effect).lower(),
            )
            for row in rows
        ]

        role_names = sorted({str(row.name) for row in rows})
        if role_names and not ctx.roles:
            ctx.roles = role_names

        payload: dict[str, Any] = {"rules": rules, "empty": len(rules) == 0, "role_names": role_names}
        ctx.remember(self.CACHE_KEY, payload)
        return payload

    @staticmethod
    def _object_matches(rule_object: str, object_name: str) -> bool:
        return rule_object in {"*", object_name}

    def _evaluate_object_rules(self, rules: list[_DbPermissionRule], *, object_name: str, action: str) -> str | None:
        matched = [rule for rule in rules if self._object_matches(rule.object_name, object_name) and rule.action == action]
        return self._resolve_effect(matched)

    def _evaluate_field_rules(
        self,
        rules: list[_DbPermissionRule],
        *,
        object_name: str,
        action: str,
        field: str,
    ) -> str | None:
        relevant = [rule for rule in rules if self._object_matches(rule.object_name, object_name) and rule.action == action]
        explicit = [rule for rule in relevant if rule.field == field]
        wildcard = [rule for rule in relevant if rule.field == "*"]

        for candidates in (explicit, wildcard):
            decision = self._resolve_effect(candidates)
            if decision is not None:
                return decision
        return None

    @staticmethod
    def _resolve_effect(rules: list[_DbPermissionRule]) -> str | None:
        if any(rule.effect == "deny" for rule in rules):
            return "deny"
        if any(rule.effect == "allow" for rule in rules):
            return "allow"
        return None


_POLICY_BACKEND: PolicyBackend = InMemoryPolicyBackend(default_allow=True)
_POLICY_LOCK = Lock()


def get_policy_backend() -> PolicyBackend:
    """Get the active policy backend instance."""

    return _POLICY_BACKEND


def set_policy_backend(backend: PolicyBackend) -> None:
    """Set the active policy backend instance."""

    global _POLICY_BACKEND
    with _POLICY_LOCK:
        _POLICY_BACKEND = backend
