import logging
import os
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, g, request

from app.clearbroker.admin import bp as admin_bp
from app.clearbroker.auth import bp as auth_bp, load_current_broker
from app.clearbroker.config import load_config
from app.clearbroker.db import init_db, teardown_db_session
from app.clearbroker.errors import register_error_handlers
from app.clearbroker.modules.customers.api import bp as customers_bp
from app.clearbroker.routes import bp as routes_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=app.config["SESSION_LIFETIME_HOURS"])
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(customers_bp, url_prefix="/api/customers")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    def _load_broker_wrapper():
        if request.path.startswith(("/health", "/healthz")):
            return None
        return load_current_broker()

    app.before_request(_load_broker_wrapper)
    app.teardown_appcontext(teardown_db_session)

    register_error_handlers(app)

    @app.after_request
    def _request_id_header(response):  # type: ignore[no-redef]
        rid = getattr(g, "request_id", None)
        if rid:
            response.headers["X-Request-ID"] = rid
        return response

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
