from __future__ import annotations

from flask import Blueprint, jsonify

from app.clearbroker import repository
from app.clearbroker.context import current_context
from app.clearbroker.db import db_session
from app.clearbroker.errors import handle_unexpected
from app.clearbroker.modules.customers import service
from app.clearbroker.rbac import require_auth
from app.clearbroker.serializers import customer_to_dict
from app.clearbroker.utils import json_body, require_valid
from app.clearbroker.validation import validate_customer_payload, validate_status_payload

bp = Blueprint("customers", __name__)


@bp.get("")
@require_auth
@handle_unexpected("Failed to fetch customers")
def customers_list():
    s = db_session()
    customers = repository.get_customers_by_broker_id(s, current_context().broker_id)
    return jsonify([customer_to_dict(c) for c in customers])


@bp.post("")
@require_auth
@handle_unexpected("Failed to create customer")
def customers_create():
    data = require_valid(validate_customer_payload(json_body()))
    s = db_session()
    c = service.create_customer(s, data, ctx=current_context())
    s.commit()
    return jsonify(customer_to_dict(c)), 201


@bp.patch("/<customer_id>/status")
@require_auth
@handle_unexpected("Failed to update customer status")
def customers_update_status(customer_id: str):
    # Status is checked before the lookup: a bad value is 400 whether or not the id exists.
    data = require_valid(validate_status_payload(json_body()))
    s = db_session()
    c = service.change_status(s, customer_id, data["status"], ctx=current_context())
    s.commit()
    return jsonify(customer_to_dict(c))
