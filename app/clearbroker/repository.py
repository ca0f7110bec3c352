"""
Access layer: every query the HTTP handlers need, and nothing else.

All functions take the request-scoped SQLAlchemy session first. They flush but
never commit; the handler owns the transaction. Store failures propagate as
SQLAlchemy exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.clearbroker.constants import CUSTOMER_STATUSES, DEFAULT_CUSTOMER_STATUS
from app.clearbroker.errors import ConflictError
from app.clearbroker.models import AuditEvent, Broker
from app.clearbroker.modules.customers.models import Customer


@dataclass(frozen=True)
class Stats:
    total_brokers: int
    total_customers: int
    active_customers: int
    pending_customers: int


# --- Brokers -----------------------------------------------------------------


def get_broker(s: Session, broker_id: str) -> Broker | None:
    return s.get(Broker, broker_id)


def get_broker_by_email(s: Session, email: str) -> Broker | None:
    return s.query(Broker).filter(Broker.email == email).one_or_none()


def create_broker(
    s: Session,
    *,
    name: str,
    email: str,
    password_hash: str,
    company_name: str | None = None,
    is_admin: bool = False,
) -> Broker:
    """
    Insert a broker. Callers check get_broker_by_email first; if a concurrent
    registration wins the race anyway, the unique constraint trips inside the
    SAVEPOINT and surfaces as the same ConflictError.
    """
    try:
        with s.begin_nested():
            b = Broker(
                name=name,
                email=email,
                password_hash=password_hash,
                company_name=company_name,
                is_admin=is_admin,
            )
            s.add(b)
            s.flush()
    except IntegrityError:
        raise ConflictError("Email already registered")
    return b


def get_brokers_with_customer_count(s: Session) -> list[tuple[Broker, int]]:
    """Non-admin brokers with how many customers each owns, oldest first."""
    rows = (
        s.query(Broker, func.count(Customer.id))
        .outerjoin(Customer, Customer.broker_id == Broker.id)
        .filter(Broker.is_admin.is_(False))
        .group_by(Broker.id)
        .order_by(Broker.created_at, Broker.id)
        .all()
    )
    return [(b, int(cnt or 0)) for b, cnt in rows]


# --- Customers ---------------------------------------------------------------


def get_customer(s: Session, customer_id: str) -> Customer | None:
    return s.get(Customer, customer_id)


def get_customers_by_broker_id(s: Session, broker_id: str) -> list[Customer]:
    return (
        s.query(Customer)
        .filter(Customer.broker_id == broker_id)
        .order_by(Customer.created_at, Customer.id)
        .all()
    )


def get_all_customers(s: Session) -> list[Customer]:
    return s.query(Customer).order_by(Customer.created_at, Customer.id).all()


def create_customer(s: Session, *, name: str, email: str, gstin: str, type: str, broker_id: str) -> Customer:
    c = Customer(
        name=name,
        email=email,
        gstin=gstin,
        type=type,
        status=DEFAULT_CUSTOMER_STATUS,
        broker_id=broker_id,
    )
    s.add(c)
    s.flush()
    return c


def update_customer_status(s: Session, customer_id: str, status: str) -> Customer | None:
    if status not in CUSTOMER_STATUSES:
        raise ValueError(f"Unknown customer status: {status!r}")
    c = get_customer(s, customer_id)
    if c is None:
        return None
    c.status = status
    s.flush()
    return c


# --- Aggregates ----------------------------------------------------------------


def get_stats(s: Session) -> Stats:
    total_brokers = s.execute(
        select(func.count(Broker.id)).where(Broker.is_admin.is_(False))
    ).scalar_one()
    total, active, pending = s.execute(
        select(
            func.count(Customer.id),
            func.coalesce(func.sum(case((Customer.status == "active", 1), else_=0)), 0),
            func.coalesce(func.sum(case((Customer.status == "pending", 1), else_=0)), 0),
        )
    ).one()
    return Stats(
        total_brokers=int(total_brokers or 0),
        total_customers=int(total or 0),
        active_customers=int(active or 0),
        pending_customers=int(pending or 0),
    )


def list_audit_events(s: Session, limit: int = 100) -> list[AuditEvent]:
    return (
        s.query(AuditEvent)
        .order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc())
        .limit(limit)
        .all()
    )
