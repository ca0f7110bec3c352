from __future__ import annotations

import dataclasses
import secrets
import uuid
from collections import defaultdict
from datetime import datetime, timedelta

from flask import Blueprint, current_app, g, jsonify, request, session
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from app.clearbroker import repository
from app.clearbroker.audit import record_event
from app.clearbroker.context import RequestContext, current_context
from app.clearbroker.db import db_session
from app.clearbroker.errors import AuthenticationError, ConflictError, RateLimited, handle_unexpected
from app.clearbroker.models import AuthSession, Broker
from app.clearbroker.rbac import require_auth
from app.clearbroker.serializers import broker_to_dict
from app.clearbroker.utils import json_body, require_valid
from app.clearbroker.validation import validate_login_payload, validate_register_payload

bp = Blueprint("auth", __name__)

SESSION_KEY = "sid"
INVALID_CREDENTIALS = "Invalid email or password"


# --- Passwords -----------------------------------------------------------------


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=current_app.config.get("PASSWORD_HASH_METHOD", "scrypt"))


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def _dummy_hash() -> str:
    # Checked against when the email is unknown, so both login failures cost the same.
    h = current_app.extensions.get("clearbroker_dummy_hash")
    if h is None:
        h = hash_password(secrets.token_urlsafe(16))
        current_app.extensions["clearbroker_dummy_hash"] = h
    return h


# --- Login throttling ------------------------------------------------------------


def _login_attempts() -> dict[str, list[datetime]]:
    return current_app.extensions.setdefault("clearbroker_login_attempts", defaultdict(list))


def _check_rate_limit(ip: str) -> bool:
    window = int(current_app.config.get("LOGIN_RATE_WINDOW", 300))
    limit = int(current_app.config.get("LOGIN_RATE_LIMIT", 5))
    attempts = _login_attempts()
    cutoff = datetime.utcnow() - timedelta(seconds=window)
    attempts[ip] = [t for t in attempts[ip] if t > cutoff]
    return len(attempts[ip]) >= limit


def _record_failed_attempt(ip: str) -> None:
    _login_attempts()[ip].append(datetime.utcnow())


# --- Sessions --------------------------------------------------------------------


def load_current_broker() -> None:
    """
    Builds g.ctx from the signed session cookie.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    ctx = RequestContext(request_id=g.request_id, client_ip=request.remote_addr)
    g.ctx = ctx

    sid = session.get(SESSION_KEY)
    if not sid:
        return

    try:
        s = db_session()
        rec = s.get(AuthSession, str(sid))
        if rec is None or not rec.is_valid():
            session.pop(SESSION_KEY, None)
            return
        g.ctx = dataclasses.replace(ctx, broker_id=rec.broker_id, session_id=rec.id)
    except Exception as e:
        current_app.logger.error("load_current_broker DB error (clearing session): %s", e)
        session.pop(SESSION_KEY, None)


def start_session(s: Session, broker: Broker) -> AuthSession:
    ctx = current_context()
    if ctx.session_id:
        # Never carry a pre-login session id across an identity change.
        _revoke(s, ctx.session_id)
    lifetime = timedelta(hours=int(current_app.config.get("SESSION_LIFETIME_HOURS", 8)))
    now = datetime.utcnow()
    rec = AuthSession(
        id=secrets.token_urlsafe(32),
        broker_id=broker.id,
        created_at=now,
        expires_at=now + lifetime,
    )
    s.add(rec)
    s.flush()
    session.clear()
    session[SESSION_KEY] = rec.id
    session.permanent = True
    g.ctx = dataclasses.replace(ctx, broker_id=broker.id, session_id=rec.id)
    return rec


def _revoke(s: Session, session_id: str) -> None:
    rec = s.get(AuthSession, session_id)
    if rec is not None and rec.revoked_at is None:
        rec.revoked_at = datetime.utcnow()


def end_session(s: Session) -> None:
    ctx = current_context()
    if ctx.session_id:
        _revoke(s, ctx.session_id)
    # An emptied session makes Flask delete the cookie on the response.
    session.clear()
    g.ctx = dataclasses.replace(ctx, broker_id=None, session_id=None)


# --- Routes ----------------------------------------------------------------------


@bp.post("/register")
@handle_unexpected("Registration failed")
def register():
    data = require_valid(validate_register_payload(json_body()))
    s = db_session()

    if repository.get_broker_by_email(s, data["email"]) is not None:
        raise ConflictError("Email already registered")

    broker = repository.create_broker(
        s,
        name=data["name"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        company_name=data["company_name"],
    )
    start_session(s, broker)
    record_event(
        s,
        ctx=current_context(),
        actor=broker,
        action="auth.register",
        entity_type="Broker",
        entity_id=broker.id,
        metadata={"company_name": broker.company_name} if broker.company_name else None,
    )
    s.commit()
    current_app.logger.info("Broker registered (broker_id=%s request_id=%s)", broker.id, g.request_id)
    return jsonify({"broker": broker_to_dict(broker)}), 201


@bp.post("/login")
@handle_unexpected("Login failed")
def login():
    data = require_valid(validate_login_payload(json_body()))
    ip = request.remote_addr or "unknown"

    if _check_rate_limit(ip):
        raise RateLimited("Too many login attempts. Please wait and try again.")

    s = db_session()
    broker = repository.get_broker_by_email(s, data["email"])
    if broker is None:
        verify_password(_dummy_hash(), data["password"])
        ok = False
    else:
        ok = verify_password(broker.password_hash, data["password"])

    if not ok:
        _record_failed_attempt(ip)
        record_event(
            s,
            ctx=current_context(),
            actor=None,
            action="auth.login_failed",
            entity_type="Broker",
            entity_id=data["email"],
            reason="Invalid credentials",
        )
        s.commit()
        current_app.logger.warning("Failed login (email=%s request_id=%s)", data["email"], g.request_id)
        raise AuthenticationError(INVALID_CREDENTIALS)

    _login_attempts().pop(ip, None)
    start_session(s, broker)
    record_event(s, ctx=current_context(), actor=broker, action="auth.login", entity_type="Broker", entity_id=broker.id)
    s.commit()
    return jsonify({"broker": broker_to_dict(broker)})


@bp.post("/logout")
@handle_unexpected("Logout failed")
def logout():
    s = db_session()
    ctx = current_context()
    broker = repository.get_broker(s, ctx.broker_id) if ctx.broker_id else None
    end_session(s)
    if broker is not None:
        record_event(s, ctx=ctx, actor=broker, action="auth.logout", entity_type="Broker", entity_id=broker.id)
    s.commit()
    return jsonify({"message": "Logged out successfully"})


@bp.get("/me")
@require_auth
@handle_unexpected("Auth check failed")
def me():
    s = db_session()
    broker = repository.get_broker(s, current_context().broker_id)
    if broker is None:
        raise AuthenticationError("Broker not found")
    return jsonify({"broker": broker_to_dict(broker)})
