from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


class AuthorizationError(Exception):
    """Base authorization error for object and field access failures."""


class NoAccessError(AuthorizationError):
    """Raised when the caller has no object-level access for the requested access type."""

    def __init__(self, access_type: str, object_name: str) -> None:
        self.access_type = access_type
        self.object_name = object_name
        super().__init__(f'"{access_type}" access denied on Object: "{object_name}"')


class UnknownObjectError(LookupError):
    """Raised when an object type is not present in the schema registry."""

    def __init__(self, object_name: str) -> None:
        self.object_name = object_name
        super().__init__(f"Unknown object: {object_name}")


@dataclass(frozen=True, slots=True)
class FieldDenial:
    access_type: str
    object_name: str
    object_label: str
    fields: tuple[str, ...]

    @property
    def message(self) -> str:
        return (
            f'"{self.access_type}" access missing on Fields:"{",".join(self.fields)}" '
            f'from Object: "{self.object_label}"'
        )


class AccessorError(AuthorizationError):
    """Raised when fields were stripped from a record set for the requested access type.

    The leading denial populates ``access_type``, ``object_name``,
    ``object_label`` and ``denied_fields``; ``denials`` holds every denial the
    evaluation surfaced.
    """

    def __init__(self, denials: Iterable[FieldDenial]) -> None:
        self.denials = list(denials)
        if not self.denials:
            raise ValueError("AccessorError requires at least one denial")

        first = self.denials[0]
        self.access_type = first.access_type
        self.object_name = first.object_name
        self.object_label = first.object_label
        self.denied_fields = list(first.fields)
        super().__init__("; ".join(denial.message for denial in self.denials))
