from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app.clearbroker import repository
from app.clearbroker.audit import record_event
from app.clearbroker.context import RequestContext
from app.clearbroker.errors import AuthorizationError, NotFoundError
from app.clearbroker.modules.customers.models import Customer
from app.clearbroker.rbac import is_admin


def create_customer(s: Session, data: dict[str, Any], *, ctx: RequestContext) -> Customer:
    """
    Create a customer owned by the calling broker. `data` is the validated
    payload; ownership and the initial "pending" status come from the server.
    """
    c = repository.create_customer(
        s,
        name=data["name"],
        email=data["email"],
        gstin=data["gstin"],
        type=data["type"],
        broker_id=ctx.broker_id,
    )
    record_event(
        s,
        ctx=ctx,
        actor=repository.get_broker(s, ctx.broker_id),
        action="customer.create",
        entity_type="Customer",
        entity_id=c.id,
        metadata={"gstin": c.gstin, "type": c.type},
    )
    return c


def change_status(s: Session, customer_id: str, status: str, *, ctx: RequestContext) -> Customer:
    c = repository.get_customer(s, customer_id)
    if c is None:
        raise NotFoundError("Customer not found")

    # Owners may always change their own records; anyone else must be an admin.
    if c.broker_id != ctx.broker_id and not is_admin(ctx.broker_id):
        raise AuthorizationError("Forbidden")

    before = c.status
    updated = repository.update_customer_status(s, customer_id, status)
    if updated is None:
        raise NotFoundError("Customer not found")
    record_event(
        s,
        ctx=ctx,
        actor=repository.get_broker(s, ctx.broker_id),
        action="customer.status_update",
        entity_type="Customer",
        entity_id=updated.id,
        metadata={"from": before, "to": updated.status},
    )
    return updated
