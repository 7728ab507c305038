from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from accessor.platform.security.types import SchemaDescription


ROW_TEMPLATE = "\n {0} : {1} is Accessible: {2},  Createable: {3}, Updateable: {4}"
OBJECT_HEADER_TEMPLATE = "\n\n Access Report for Object: {0}"
OBJECT_TRAILER = "\n\n"
OBJECT_LABEL_WIDTH = 19
FIELD_LABEL_WIDTH = 20


@dataclass(frozen=True, slots=True)
class ReportRow:
    kind: Literal["Object", "Field"]
    label: str
    accessible: bool
    createable: bool
    updateable: bool


def _flag(value: bool) -> str:
    return "true" if value else "false"


def format_row(row: ReportRow) -> str:
    width = OBJECT_LABEL_WIDTH if row.kind == "Object" else FIELD_LABEL_WIDTH
    return ROW_TEMPLATE.format(
        row.kind,
        row.label.ljust(width),
        _flag(row.accessible),
        _flag(row.createable),
        _flag(row.updateable),
    )


def object_rows(description: SchemaDescription) -> list[ReportRow]:
    """Object row first, then one row per field in schema order."""

    rows = [
        ReportRow(
            kind="Object",
            label=description.label,
            accessible=description.is_accessible,
            createable=description.is_createable,
            updateable=description.is_updateable,
        )
    ]
    for field in (description.fields or {}).values():
        rows.append(
            ReportRow(
                kind="Field",
                label=field.label,
                accessible=field.is_accessible,
                createable=field.is_createable,
                updateable=field.is_updateable,
            )
        )
    return rows


def format_object_block(description: SchemaDescription) -> str:
    parts = [OBJECT_HEADER_TEMPLATE.format(description.name)]
    parts.extend(format_row(row) for row in object_rows(description))
    parts.append(OBJECT_TRAILER)
    return "".join(parts)


def build_report(descriptions: Iterable[SchemaDescription]) -> str:
    return "".join(format_object_block(description) for description in descriptions)
