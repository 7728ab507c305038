from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from accessor.core.auth import AuthUser, get_current_user
from accessor.core.config import get_settings
from accessor.metrics import generate_metrics_payload, metrics_content_type
from accessor.protected.api import router as access_router

router = APIRouter()
router.include_router(access_router)


@router.get("/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.get("/metrics", tags=["system"])
def metrics(user: AuthUser = Depends(get_current_user)) -> Response:
    settings = get_settings()
    if not settings.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    if "system.metrics.read" not in (*user.roles, *user.permissions):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Missing permission: system.metrics.read")
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
