from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class AuthContext:
    """Caller identity used by object and field permission checks.

    ``permissions`` holds grant strings such as ``ProtectedSetting__c.read``
    or ``ProtectedSetting__c.field.update:Value__c``. Policy backends may
    memoise per-caller lookups through ``cached`` / ``remember`` for the
    lifetime of the context.
    """

    user_id: str
    correlation_id: str | None = None
    roles: list[str] = field(default_factory=list)
    permissions: list[str] = field(default_factory=list)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def for_caller(
        cls,
        user_id: str,
        roles: Iterable[str],
        permissions: Iterable[str] = (),
        *,
        correlation_id: str | None = None,
    ) -> AuthContext:
        # Role names double as grant strings.
        role_list = [str(role) for role in roles]
        grants = list(dict.fromkeys([*role_list, *(str(item) for item in permissions)]))
        return cls(user_id=user_id, correlation_id=correlation_id, roles=role_list, permissions=grants)

    def cached(self, key: str) -> Any | None:
        return self._cache.get(key)

    def remember(self, key: str, value: Any) -> None:
        self._cache[key] = value
