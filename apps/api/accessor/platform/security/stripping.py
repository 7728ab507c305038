from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from accessor.platform.security.context import AuthContext
from accessor.platform.security.errors import NoAccessError
from accessor.platform.security.policies import (
    PolicyBackend,
    field_actions_for,
    get_policy_backend,
    object_actions_for,
)
from accessor.platform.security.types import ID_FIELD, AccessDecision, AccessType, Record


class StrippingBackend(Protocol):
    """Removes inaccessible fields from records and reports what was removed.

    The decision carries one copy per input record, in input order.
    """

    def strip(self, access_type: AccessType, records: Sequence[Record]) -> AccessDecision:
        ...


class PolicyStrippingBackend:
    """Strips populated fields the caller cannot use for the requested access type.

    Object-level access is checked first and raises ``NoAccessError`` before
    any decision is produced. Input records are left untouched; the decision
    carries stripped copies.
    """

    def __init__(self, ctx: AuthContext, policy: PolicyBackend | None = None) -> None:
        self._ctx = ctx
        self._policy = policy

    def strip(self, access_type: AccessType, records: Sequence[Record]) -> AccessDecision:
        policy = self._policy or get_policy_backend()
        decision = AccessDecision()

        checked_objects: set[str] = set()
        for record in records:
            if record.object_type not in checked_objects:
                self._check_object(policy, access_type, record.object_type)
                checked_objects.add(record.object_type)

            stripped = record.copy()
            for field_name in record.populated_fields():
                if field_name == ID_FIELD:
                    continue
                if self._field_allowed(policy, access_type, record.object_type, field_name):
                    continue
                del stripped.fields[field_name]
                decision.removed_fields.setdefault(record.object_type, set()).add(field_name)
            decision.records.append(stripped)

        return decision

    def _check_object(self, policy: PolicyBackend, access_type: AccessType, object_name: str) -> None:
        for action in object_actions_for(access_type):
            if not policy.is_object_allowed(object_name, action, self._ctx):
                raise NoAccessError(access_type.value, object_name)

    def _field_allowed(self, policy: PolicyBackend, access_type: AccessType, object_name: str, field_name: str) -> bool:
        return all(
            policy.is_field_allowed(object_name, field_name, action, self._ctx)
            for action in field_actions_for(access_type)
        )
