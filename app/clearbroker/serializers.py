from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from app.clearbroker.models import AuditEvent, Broker
from app.clearbroker.modules.customers.models import Customer


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def broker_to_dict(b: Broker, *, customer_count: int | None = None) -> dict[str, Any]:
    """Public view of a broker. The password hash is never included."""
    out: dict[str, Any] = {
        "id": b.id,
        "name": b.name,
        "email": b.email,
        "companyName": b.company_name,
        "isAdmin": bool(b.is_admin),
        "createdAt": _iso(b.created_at),
    }
    if customer_count is not None:
        out["customerCount"] = customer_count
    return out


def customer_to_dict(c: Customer) -> dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "email": c.email,
        "gstin": c.gstin,
        "type": c.type,
        "status": c.status,
        "brokerId": c.broker_id,
        "createdAt": _iso(c.created_at),
    }


def audit_event_to_dict(ev: AuditEvent) -> dict[str, Any]:
    return {
        "id": ev.id,
        "createdAt": _iso(ev.created_at),
        "requestId": ev.request_id,
        "actorBrokerId": ev.actor_broker_id,
        "actorEmail": ev.actor_email,
        "action": ev.action,
        "entityType": ev.entity_type,
        "entityId": ev.entity_id,
        "reason": ev.reason,
        "metadata": json.loads(ev.metadata_json) if ev.metadata_json else None,
    }
