import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from accessor.api.routes import router as api_router
from accessor.core.config import get_settings
from accessor.logging import configure_logging
from accessor.middleware.correlation_id import CorrelationIdMiddleware
from accessor.middleware.request_logging import RequestLoggingMiddleware
from accessor.platform.security.policies import DbPolicyBackend, InMemoryPolicyBackend, PolicyBackend, set_policy_backend


configure_logging()
logger = logging.getLogger("accessor.lifecycle")


def build_policy_backend() -> PolicyBackend:
    settings = get_settings()
    backend_choice = settings.authz_policy_backend.lower()
    if backend_choice == "auto":
        backend_choice = "db" if settings.app_env.lower() in {"prod", "production"} else "inmemory"

    if backend_choice == "db":
        return DbPolicyBackend(default_allow=settings.authz_default_allow)
    return InMemoryPolicyBackend(default_allow=settings.authz_default_allow)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("system.started")
    yield


app = FastAPI(title="Accessor API", version="0.1.0", lifespan=lifespan)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.include_router(api_router)

set_policy_backend(build_policy_backend())
