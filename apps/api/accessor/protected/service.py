from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from accessor.core.config import get_settings
from accessor.metrics import observe_access_report
from accessor.platform.security.context import AuthContext
from accessor.platform.security.errors import AuthorizationError
from accessor.platform.security.evaluator import AccessEvaluator, DenialMode
from accessor.platform.security.reporter import build_report
from accessor.platform.security.schema import ObjectRegistry, PolicySchemaService
from accessor.platform.security.stripping import PolicyStrippingBackend
from accessor.platform.security.types import AccessType
from accessor.protected.objects import protected_registry
from accessor.protected.repository import (
    ProtectedListSettingRepository,
    ProtectedObjectRepository,
    ProtectedRecordRepository,
    ProtectedSettingRepository,
)
from accessor.protected.schemas import AccessCheckRead
from accessor.protected.seed import timestamp_value


logger = logging.getLogger("accessor.access")


@dataclass(slots=True)
class AccessService:
    setting_repository: ProtectedSettingRepository = field(default_factory=ProtectedSettingRepository)
    list_setting_repository: ProtectedListSettingRepository = field(default_factory=ProtectedListSettingRepository)
    object_repository: ProtectedObjectRepository = field(default_factory=ProtectedObjectRepository)
    registry: ObjectRegistry = protected_registry

    def access_hierarchy_setting(self, session: Session, ctx: AuthContext, access_type: AccessType) -> AccessCheckRead:
        return self._check_access(session, ctx, access_type, self.setting_repository)

    def access_list_setting(self, session: Session, ctx: AuthContext, access_type: AccessType) -> AccessCheckRead:
        return self._check_access(session, ctx, access_type, self.list_setting_repository)

    def access_custom_object(self, session: Session, ctx: AuthContext, access_type: AccessType) -> AccessCheckRead:
        return self._check_access(session, ctx, access_type, self.object_repository)

    def generate_classic_access_report(self, ctx: AuthContext) -> str:
        descriptions = PolicySchemaService(ctx, self.registry).describe_all()
        report = build_report(descriptions)
        observe_access_report(len(descriptions))
        logger.info("access.report", extra={"object_count": len(descriptions)})
        return report

    def build_evaluator(self, ctx: AuthContext) -> AccessEvaluator:
        return AccessEvaluator(
            stripper=PolicyStrippingBackend(ctx),
            schema=PolicySchemaService(ctx, self.registry),
            denial_mode=DenialMode(get_settings().access_denial_mode),
            ctx=ctx,
        )

    def _check_access(
        self,
        session: Session,
        ctx: AuthContext,
        access_type: AccessType,
        repository: ProtectedRecordRepository,
    ) -> AccessCheckRead:
        definition = repository.definition
        value = timestamp_value()
        records = repository.records_for(session, access_type, {"name": f"Check {value}", "value": value})

        try:
            self.build_evaluator(ctx).evaluate(access_type, records)
        except AuthorizationError as exc:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))

        logger.info(
            "access.granted",
            extra={
                "access_type": access_type.value,
                "object_name": definition.name,
                "record_count": len(records),
            },
        )
        return AccessCheckRead(
            object_name=definition.name,
            object_label=definition.label,
            access_type=access_type,
            record_count=len(records),
            granted=True,
        )


access_service = AccessService()
