"""Tests for the admin oversight endpoints."""
import pytest
from werkzeug.security import generate_password_hash

from app.clearbroker import create_app
from app.clearbroker.db import session_scope
from app.clearbroker.models import Base, Broker

HASH_METHOD = "pbkdf2:sha256:1000"
VALID_GSTIN = "29ABCDE1234F1Z5"
ADMIN_ROUTES = ("/api/admin/stats", "/api/admin/brokers", "/api/admin/customers", "/api/admin/audit")


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("PASSWORD_HASH_METHOD", HASH_METHOD)

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        s.add(
            Broker(
                name="Admin User",
                email="admin@example.com",
                password_hash=generate_password_hash("adminpass1", method=HASH_METHOD),
                company_name="ClearBroker Admin",
                is_admin=True,
            )
        )
    return app


def _register(app, name: str, email: str):
    c = app.test_client()
    r = c.post("/api/auth/register", json={"name": name, "email": email, "password": "password123"})
    assert r.status_code == 201
    return c


def _admin(app):
    c = app.test_client()
    r = c.post("/api/auth/login", json={"email": "admin@example.com", "password": "adminpass1"})
    assert r.status_code == 200
    assert r.json["broker"]["isAdmin"] is True
    return c


def _add_customer(c, name: str):
    r = c.post(
        "/api/customers",
        json={"name": name, "email": f"{name.lower().replace(' ', '')}@trade.in", "gstin": VALID_GSTIN, "type": "importer"},
    )
    assert r.status_code == 201
    return r.json["id"]


@pytest.mark.parametrize("path", ADMIN_ROUTES)
def test_admin_routes_require_auth(app, path):
    r = app.test_client().get(path)
    assert r.status_code == 401


@pytest.mark.parametrize("path", ADMIN_ROUTES)
def test_admin_routes_forbid_non_admin(app, path):
    c = _register(app, "Plain Broker", "plain@example.com")
    r = c.get(path)
    assert r.status_code == 403
    assert r.json["message"] == "Forbidden"


def test_stats(app):
    alice = _register(app, "Alice", "alice@example.com")
    bob = _register(app, "Bob", "bob@example.com")
    a1 = _add_customer(alice, "Alpha One")
    _add_customer(alice, "Alpha Two")
    _add_customer(bob, "Beta One")
    alice.patch(f"/api/customers/{a1}/status", json={"status": "active"})

    r = _admin(app).get("/api/admin/stats")
    assert r.status_code == 200
    assert r.json == {
        "totalBrokers": 2,  # the admin is not counted
        "totalCustomers": 3,
        "activeCustomers": 1,
        "pendingCustomers": 2,
    }


def test_stats_empty(app):
    r = _admin(app).get("/api/admin/stats")
    assert r.json == {"totalBrokers": 0, "totalCustomers": 0, "activeCustomers": 0, "pendingCustomers": 0}


def test_brokers_with_customer_count_hide_passwords(app):
    alice = _register(app, "Alice", "alice@example.com")
    _register(app, "Bob", "bob@example.com")
    _add_customer(alice, "Alpha One")
    _add_customer(alice, "Alpha Two")

    r = _admin(app).get("/api/admin/brokers")
    assert r.status_code == 200
    counts = {b["email"]: b["customerCount"] for b in r.json}
    assert counts == {"alice@example.com": 2, "bob@example.com": 0}
    for b in r.json:
        assert "password" not in b
        assert "passwordHash" not in b
        assert b["isAdmin"] is False


def test_all_customers_spans_brokers(app):
    alice = _register(app, "Alice", "alice@example.com")
    bob = _register(app, "Bob", "bob@example.com")
    _add_customer(alice, "Alpha One")
    _add_customer(bob, "Beta One")

    r = _admin(app).get("/api/admin/customers")
    assert r.status_code == 200
    assert [c["name"] for c in r.json] == ["Alpha One", "Beta One"]
    assert len({c["brokerId"] for c in r.json}) == 2


def test_audit_feed_newest_first(app):
    alice = _register(app, "Alice", "alice@example.com")
    _add_customer(alice, "Alpha One")

    r = _admin(app).get("/api/admin/audit?limit=2")
    assert r.status_code == 200
    assert [ev["action"] for ev in r.json] == ["auth.login", "customer.create"]
    assert r.json[1]["actorEmail"] == "alice@example.com"


@pytest.mark.parametrize(
    "path,target,message",
    [
        ("/api/admin/stats", "get_stats", "Failed to fetch stats"),
        ("/api/admin/brokers", "get_brokers_with_customer_count", "Failed to fetch brokers"),
        ("/api/admin/customers", "get_all_customers", "Failed to fetch customers"),
        ("/api/admin/audit", "list_audit_events", "Failed to fetch audit events"),
    ],
)
def test_admin_store_failure_is_generic_500(app, monkeypatch, path, target, message):
    from app.clearbroker import repository

    c = _admin(app)

    def boom(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(repository, target, boom)
    r = c.get(path)
    assert r.status_code == 500
    assert r.json == {"message": message}
