from flask import Blueprint, jsonify, request

from app.clearbroker import repository
from app.clearbroker.db import db_session
from app.clearbroker.errors import handle_unexpected
from app.clearbroker.rbac import require_admin
from app.clearbroker.serializers import audit_event_to_dict, broker_to_dict, customer_to_dict

bp = Blueprint("admin", __name__)


@bp.get("/stats")
@require_admin
@handle_unexpected("Failed to fetch stats")
def stats():
    st = repository.get_stats(db_session())
    return jsonify(
        {
            "totalBrokers": st.total_brokers,
            "totalCustomers": st.total_customers,
            "activeCustomers": st.active_customers,
            "pendingCustomers": st.pending_customers,
        }
    )


@bp.get("/brokers")
@require_admin
@handle_unexpected("Failed to fetch brokers")
def brokers():
    rows = repository.get_brokers_with_customer_count(db_session())
    return jsonify([broker_to_dict(b, customer_count=cnt) for b, cnt in rows])


@bp.get("/customers")
@require_admin
@handle_unexpected("Failed to fetch customers")
def customers():
    return jsonify([customer_to_dict(c) for c in repository.get_all_customers(db_session())])


@bp.get("/audit")
@require_admin
@handle_unexpected("Failed to fetch audit events")
def audit():
    try:
        limit = int(request.args.get("limit") or "100")
    except ValueError:
        limit = 100
    limit = max(1, min(limit, 500))
    return jsonify([audit_event_to_dict(ev) for ev in repository.list_audit_events(db_session(), limit=limit)])
