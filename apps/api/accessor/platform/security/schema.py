from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Protocol

from accessor.platform.security.context import AuthContext
from accessor.platform.security.errors import UnknownObjectError
from accessor.platform.security.policies import FieldAction, ObjectAction, PolicyBackend, get_policy_backend
from accessor.platform.security.types import FieldDescription, SchemaDescription


@dataclass(frozen=True, slots=True)
class FieldDefinition:
    name: str
    label: str
    column: str


@dataclass(frozen=True, slots=True)
class ObjectDefinition:
    name: str
    label: str
    fields: tuple[FieldDefinition, ...] = field(default_factory=tuple)


class ObjectRegistry:
    """Static object metadata, kept in registration order."""

    def __init__(self, definitions: Iterable[ObjectDefinition] = ()) -> None:
        self._definitions: dict[str, ObjectDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: ObjectDefinition) -> None:
        self._definitions[definition.name] = definition

    def get(self, object_name: str) -> ObjectDefinition:
        try:
            return self._definitions[object_name]
        except KeyError:
            raise UnknownObjectError(object_name) from None

    def __iter__(self) -> Iterator[ObjectDefinition]:
        return iter(self._definitions.values())


class SchemaService(Protocol):
    def describe(self, object_name: str) -> SchemaDescription:
        ...


class PolicySchemaService:
    """Describes registered objects with accessibility flags resolved for one caller."""

    def __init__(
        self,
        ctx: AuthContext,
        registry: ObjectRegistry,
        policy: PolicyBackend | None = None,
    ) -> None:
        self._ctx = ctx
        self._registry = registry
        self._policy = policy

    def describe(self, object_name: str) -> SchemaDescription:
        definition = self._registry.get(object_name)
        policy = self._policy or get_policy_backend()

        fields = {
            item.name: FieldDescription(
                name=item.name,
                label=item.label,
                is_accessible=policy.is_field_allowed(object_name, item.name, FieldAction.READ, self._ctx),
                is_createable=policy.is_field_allowed(object_name, item.name, FieldAction.CREATE, self._ctx),
                is_updateable=policy.is_field_allowed(object_name, item.name, FieldAction.UPDATE, self._ctx),
            )
            for item in definition.fields
        }
        return SchemaDescription(
            name=definition.name,
            label=definition.label,
            is_accessible=policy.is_object_allowed(object_name, ObjectAction.READ, self._ctx),
            is_createable=policy.is_object_allowed(object_name, ObjectAction.CREATE, self._ctx),
            is_updateable=policy.is_object_allowed(object_name, ObjectAction.UPDATE, self._ctx),
            fields=fields,
        )

    def describe_all(self) -> list[SchemaDescription]:
        return [self.describe(definition.name) for definition in self._registry]
