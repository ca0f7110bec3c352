"""
Engine, session and transaction handling.

Rules:
- One SQLAlchemy session per request (`db_session()`), closed on teardown.
  Handlers commit once; the access layer only flushes.
- SAVEPOINTs (`Session.begin_nested`) must nest inside a real transaction, so
  on SQLite the driver's own transaction handling is switched off and BEGIN is
  emitted explicitly. Otherwise RELEASE of an outermost SAVEPOINT commits.
- Scripts build their engine here too, so they get the same SQLite setup.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from collections.abc import Generator

from flask import Flask, g
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # type: ignore[no-redef]
        # Hand transaction control to SQLAlchemy (pysqlite would otherwise
        # defer BEGIN until the first INSERT/UPDATE).
        dbapi_connection.isolation_level = None
        cur = dbapi_connection.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # type: ignore[no-redef]
        conn.exec_driver_sql("BEGIN")


def build_engine(db_url: str, *, log_checkouts: bool = False) -> Engine:
    engine_kwargs: dict[str, object] = {"pool_pre_ping": True}
    if db_url.startswith("postgres"):
        engine_kwargs.update(pool_recycle=1800, pool_size=5, max_overflow=10, pool_timeout=30)
    engine = create_engine(db_url, **engine_kwargs)

    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)
    if log_checkouts:
        @event.listens_for(engine, "checkout")
        def _on_checkout(dbapi_connection, connection_record, connection_proxy):  # type: ignore[no-redef]
            logger.debug("DB connection checkout from pool")
    return engine


def build_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=False)


def init_db(app: Flask) -> None:
    engine = build_engine(app.config["DATABASE_URL"], log_checkouts=app.config.get("ENV") != "production")
    app.extensions["sqlalchemy_engine"] = engine
    app.extensions["sqlalchemy_sessionmaker"] = build_sessionmaker(engine)


def db_session(app: Flask | None = None) -> Session:
    """
    Request-scoped session. Use inside request handlers.
    """
    s: Session | None = getattr(g, "db_session", None)
    if s is not None:
        return s
    if app is None:
        from flask import current_app

        app = current_app
    g.db_session = app.extensions["sqlalchemy_sessionmaker"]()
    return g.db_session


def teardown_db_session(_exc: BaseException | None) -> None:
    s: Session | None = getattr(g, "db_session", None)
    if s is not None:
        try:
            s.close()
        finally:
            g.db_session = None


@contextmanager
def _transaction(sm: sessionmaker) -> Generator[Session, None, None]:
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


@contextmanager
def session_scope(app: Flask) -> Generator[Session, None, None]:
    """
    Non-request helper for tests and app-bound tooling: commits on success,
    rolls back on error.
    """
    with _transaction(app.extensions["sqlalchemy_sessionmaker"]) as s:
        yield s


@contextmanager
def url_session_scope(db_url: str) -> Generator[Session, None, None]:
    """Same as session_scope, for scripts that only have a DATABASE_URL."""
    engine = build_engine(db_url)
    try:
        with _transaction(build_sessionmaker(engine)) as s:
            yield s
    finally:
        engine.dispose()
