from __future__ import annotations

import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Any

from accessor.context import get_correlation_id

AUDIT_TRAIL_LIMIT = 1000

# Recent entries only; older ones fall off once the limit is reached.
audit_entries: deque[dict[str, Any]] = deque(maxlen=AUDIT_TRAIL_LIMIT)


def record(
    actor_user_id: str,
    entity_type: str,
    entity_id: str,
    action: str,
    detail: dict[str, Any] | None,
    correlation_id: str | None = None,
) -> None:
    audit_entries.append(
        {
            "id": str(uuid.uuid4()),
            "actor_user_id": actor_user_id,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "action": action,
            "detail": detail,
            "correlation_id": correlation_id or get_correlation_id(),
            "occurred_at": datetime.now(timezone.utc).isoformat(),
        }
    )
