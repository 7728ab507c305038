from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from accessor import audit
from accessor.metrics import observe_access_evaluation, observe_denied_fields
from accessor.platform.security.context import AuthContext
from accessor.platform.security.errors import AccessorError, FieldDenial, NoAccessError, UnknownObjectError
from accessor.platform.security.schema import SchemaService
from accessor.platform.security.stripping import StrippingBackend
from accessor.platform.security.types import ID_FIELD, AccessDecision, AccessType, Record


logger = logging.getLogger("accessor.security")


class DenialMode(StrEnum):
    FIRST = "first"
    ALL = "all"


def _same_record(source_record: Record, stripped: Record) -> bool:
    if source_record.object_type != stripped.object_type:
        return False
    source_id = source_record.fields.get(ID_FIELD)
    stripped_id = stripped.fields.get(ID_FIELD)
    return source_id is None or stripped_id is None or source_id == stripped_id


def collect_removed_fields(records: Sequence[Record], decision: AccessDecision) -> dict[str, set[str]]:
    """Return every field removed per object, including removals the decision failed to report.

    When the decision carries one stripped copy per input record, in input
    order, populated input fields that vanished from their copy count as
    removed even if ``removed_fields`` omits them. Copies that do not line up
    with the inputs by object type or Id disable that comparison. ``Id`` never
    counts as removed.
    """

    removed: dict[str, set[str]] = {
        object_name: set(fields) for object_name, fields in decision.removed_fields.items() if fields
    }
    if len(decision.records) != len(records):
        return removed
    pairs = list(zip(records, decision.records))
    if not all(_same_record(source_record, stripped) for source_record, stripped in pairs):
        return removed

    for source_record, stripped in pairs:
        missing = set(source_record.populated_fields()) - set(stripped.populated_fields())
        missing.discard(ID_FIELD)
        if missing:
            removed.setdefault(source_record.object_type, set()).update(missing)
    return removed


@dataclass(slots=True)
class AccessEvaluator:
    """Checks that a record set keeps every populated field for an access type.

    ``denial_mode`` controls how many denied objects surface in one call:
    ``first`` stops at the first denied object, ``all`` reports each of them
    in a single ``AccessorError``.
    """

    stripper: StrippingBackend
    schema: SchemaService | None = None
    denial_mode: DenialMode = DenialMode.FIRST
    ctx: AuthContext | None = None

    def evaluate(self, access_type: AccessType | str | None, records: Sequence[Record] | None) -> None:
        if access_type is None or not records:
            return
        access_type = AccessType(access_type)

        try:
            decision = self.stripper.strip(access_type, records)
        except NoAccessError:
            observe_access_evaluation(access_type.value, "no_access")
            raise

        removed = collect_removed_fields(records, decision)
        if not removed:
            observe_access_evaluation(access_type.value, "granted")
            return

        denials: list[FieldDenial] = []
        for object_name, fields in removed.items():
            denials.append(
                FieldDenial(
                    access_type=access_type.value,
                    object_name=object_name,
                    object_label=self._object_label(object_name),
                    fields=tuple(sorted(fields)),
                )
            )
            if self.denial_mode == DenialMode.FIRST:
                break

        for denial in denials:
            self._emit_denial(denial)
        observe_access_evaluation(access_type.value, "denied")
        raise AccessorError(denials)

    def _object_label(self, object_name: str) -> str:
        if self.schema is None:
            return object_name
        try:
            return self.schema.describe(object_name).label
        except UnknownObjectError:
            return object_name

    def _emit_denial(self, denial: FieldDenial) -> None:
        denied_fields = ",".join(denial.fields)
        logger.warning(
            "access.denied",
            extra={
                "access_type": denial.access_type,
                "object_name": denial.object_name,
                "denied_fields": denied_fields,
            },
        )
        observe_denied_fields(denial.object_name, denial.access_type, len(denial.fields))
        audit.record(
            actor_user_id=self.ctx.user_id if self.ctx is not None else "system",
            entity_type="security.fls",
            entity_id=denial.object_name,
            action="access.denied",
            detail={
                "access_type": denial.access_type,
                "object_label": denial.object_label,
                "denied_fields": list(denial.fields),
            },
            correlation_id=self.ctx.correlation_id if self.ctx is not None else None,
        )
