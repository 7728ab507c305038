from dataclasses import dataclass, field
from typing import Any

from jose import JWTError, jwt
from starlette.requests import Request

from accessor.core.config import get_settings

ANONYMOUS_USER = "anonymous"
GUEST_ROLE = "guest"


@dataclass
class AuthUser:
    sub: str
    roles: list[str]
    permissions: list[str] = field(default_factory=list)


def _guest() -> AuthUser:
    return AuthUser(sub=ANONYMOUS_USER, roles=[GUEST_ROLE])


def _claim_list(payload: dict[str, Any], key: str) -> list[str]:
    value = payload.get(key, [])
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def _bearer_token(request: Request) -> str:
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    return token.strip() if scheme.lower() == "bearer" else ""


async def get_current_user(request: Request) -> AuthUser:
    """Resolve the caller from a bearer JWT.

    ``roles`` and the optional ``permissions`` claim both carry grant strings.
    Missing or invalid tokens resolve to the guest caller.
    """

    token = _bearer_token(request)
    if not token:
        return _guest()

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return _guest()

    roles = _claim_list(payload, "roles") or [GUEST_ROLE]
    return AuthUser(
        sub=str(payload.get("sub", ANONYMOUS_USER)),
        roles=roles,
        permissions=_claim_list(payload, "permissions"),
    )
