import json
from typing import Any

from sqlalchemy.orm import Session

from app.clearbroker.context import RequestContext
from app.clearbroker.models import AuditEvent, Broker


def record_event(
    s: Session,
    *,
    ctx: RequestContext | None,
    actor: Broker | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    reason: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditEvent:
    """
    Append-only audit event helper. Never pass credentials in `metadata`.
    """
    ev = AuditEvent(
        request_id=ctx.request_id if ctx else None,
        actor_broker_id=actor.id if actor else None,
        actor_email=actor.email if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
        metadata_json=json.dumps(metadata, sort_keys=True) if metadata else None,
        client_ip=ctx.client_ip if ctx else None,
    )
    s.add(ev)
    return ev
