"""Tests for the access layer queries."""
import pytest

from app.clearbroker import create_app, repository
from app.clearbroker.db import session_scope
from app.clearbroker.errors import ConflictError
from app.clearbroker.models import Base, Broker
from app.clearbroker.modules.customers.models import Customer


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    return app


def _seed(app):
    with session_scope(app) as s:
        admin = repository.create_broker(s, name="Admin", email="admin@x.com", password_hash="h", is_admin=True)
        a = repository.create_broker(s, name="Alice", email="alice@x.com", password_hash="h")
        b = repository.create_broker(s, name="Bob", email="bob@x.com", password_hash="h", company_name="Bob & Co")
        for i, status in enumerate(("active", "pending", "inactive")):
            c = repository.create_customer(
                s, name=f"A{i}", email=f"a{i}@t.in", gstin="27AAPFU0939F1ZV", type="exporter", broker_id=a.id
            )
            repository.update_customer_status(s, c.id, status)
        repository.create_customer(s, name="B0", email="b0@t.in", gstin="27AAPFU0939F1ZV", type="importer", broker_id=b.id)
        repository.create_customer(s, name="Z0", email="z0@t.in", gstin="27AAPFU0939F1ZV", type="importer", broker_id=admin.id)
        return admin.id, a.id, b.id


def test_create_customer_forces_pending(app):
    _, alice_id, _ = _seed(app)
    with session_scope(app) as s:
        c = repository.create_customer(
            s, name="New", email="n@t.in", gstin="27AAPFU0939F1ZV", type="exporter", broker_id=alice_id
        )
        assert c.status == "pending"


def test_get_stats_counts_non_admin_brokers(app):
    _seed(app)
    with session_scope(app) as s:
        st = repository.get_stats(s)
    assert st.total_brokers == 2
    assert st.total_customers == 5
    assert st.active_customers == 1
    assert st.pending_customers == 3


def test_brokers_with_customer_count_matches_join(app):
    _seed(app)
    with session_scope(app) as s:
        rows = repository.get_brokers_with_customer_count(s)
        got = {b.email: cnt for b, cnt in rows}
        expected = {
            b.email: s.query(Customer).filter(Customer.broker_id == b.id).count()
            for b in s.query(Broker).filter(Broker.is_admin.is_(False))
        }
    assert got == expected == {"alice@x.com": 3, "bob@x.com": 1}


def test_customers_by_broker_in_insertion_order(app):
    _, alice_id, _ = _seed(app)
    with session_scope(app) as s:
        names = [c.name for c in repository.get_customers_by_broker_id(s, alice_id)]
    assert names == ["A0", "A1", "A2"]


def test_update_unknown_customer_returns_none(app):
    with session_scope(app) as s:
        assert repository.update_customer_status(s, "missing", "active") is None


def test_update_rejects_unknown_status(app):
    _, alice_id, _ = _seed(app)
    with session_scope(app) as s:
        c = repository.get_customers_by_broker_id(s, alice_id)[0]
        with pytest.raises(ValueError):
            repository.update_customer_status(s, c.id, "archived")


def test_duplicate_email_insert_maps_to_conflict(app):
    # Simulates losing the check-then-insert race: no pre-check, straight insert.
    _seed(app)
    with pytest.raises(ConflictError):
        with session_scope(app) as s:
            repository.create_broker(s, name="Alice Again", email="alice@x.com", password_hash="h")
    with session_scope(app) as s:
        assert s.query(Broker).filter(Broker.email == "alice@x.com").count() == 1


def test_get_broker_lookups(app):
    _, alice_id, _ = _seed(app)
    with session_scope(app) as s:
        assert repository.get_broker(s, alice_id).email == "alice@x.com"
        assert repository.get_broker_by_email(s, "bob@x.com").company_name == "Bob & Co"
        assert repository.get_broker_by_email(s, "nobody@x.com") is None
        assert repository.get_customer(s, "nope") is None
        assert len(repository.get_all_customers(s)) == 5


def test_released_savepoint_is_undone_by_outer_rollback(app):
    sm = app.extensions["sqlalchemy_sessionmaker"]
    s = sm()
    try:
        repository.create_broker(s, name="Tentative", email="tentative@x.com", password_hash="h")
        s.rollback()
    finally:
        s.close()
    with session_scope(app) as s:
        assert repository.get_broker_by_email(s, "tentative@x.com") is None


def test_conflict_keeps_outer_transaction_usable(app):
    _seed(app)
    with session_scope(app) as s:
        repository.create_broker(s, name="Carol", email="carol@x.com", password_hash="h")
        with pytest.raises(ConflictError):
            repository.create_broker(s, name="Alice Again", email="alice@x.com", password_hash="h")
    with session_scope(app) as s:
        assert repository.get_broker_by_email(s, "carol@x.com") is not None
