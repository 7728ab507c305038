from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from accessor.context import get_correlation_id
from accessor.core.auth import AuthUser, get_current_user
from accessor.core.database import get_db
from accessor.platform.security.context import AuthContext
from accessor.protected.schemas import AccessCheckRead, AccessCheckRequest, AccessSource, PopulatedRecordRead
from accessor.protected.seed import protected_data_seeder
from accessor.protected.service import access_service


router = APIRouter(prefix="/api/access", tags=["access"])


def get_access_auth_context(request: Request, auth_user: AuthUser = Depends(get_current_user)) -> AuthContext:
    correlation_id = get_correlation_id() or getattr(request.state, "correlation_id", None)
    return AuthContext.for_caller(
        auth_user.sub,
        auth_user.roles,
        auth_user.permissions,
        correlation_id=correlation_id,
    )


@router.get("/report", response_class=PlainTextResponse)
def generate_classic_access_report(ctx: AuthContext = Depends(get_access_auth_context)) -> str:
    return access_service.generate_classic_access_report(ctx)


@router.post("/{source}", response_model=AccessCheckRead)
def check_access(
    source: AccessSource,
    payload: AccessCheckRequest,
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(get_access_auth_context),
) -> AccessCheckRead:
    if source == AccessSource.HIERARCHY_SETTING:
        return access_service.access_hierarchy_setting(db, ctx, payload.access_type)
    if source == AccessSource.LIST_SETTING:
        return access_service.access_list_setting(db, ctx, payload.access_type)
    return access_service.access_custom_object(db, ctx, payload.access_type)


@router.post("/{source}/populate", response_model=PopulatedRecordRead, status_code=status.HTTP_201_CREATED)
def populate_records(source: AccessSource, db: Session = Depends(get_db)) -> PopulatedRecordRead:
    if source == AccessSource.HIERARCHY_SETTING:
        row = protected_data_seeder.populate_hierarchy_setting(db)
    elif source == AccessSource.LIST_SETTING:
        row = protected_data_seeder.populate_list_setting(db)
    else:
        row = protected_data_seeder.populate_custom_object(db)
    return PopulatedRecordRead.model_validate(row)
