from collections.abc import Callable
from functools import wraps
from typing import Any

from app.clearbroker import repository
from app.clearbroker.context import current_context
from app.clearbroker.db import db_session
from app.clearbroker.errors import AuthenticationError, AuthorizationError
from app.clearbroker.models import Broker


def is_admin(broker_id: str | None) -> bool:
    if not broker_id:
        return False
    broker: Broker | None = repository.get_broker(db_session(), broker_id)
    return bool(broker and broker.is_admin)


def require_auth(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if not current_context().is_authenticated:
            raise AuthenticationError("Unauthorized")
        return fn(*args, **kwargs)

    return wrapped


def require_admin(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        ctx = current_context()
        # Unauthenticated → 401; authenticated but not admin → 403
        if not ctx.is_authenticated:
            raise AuthenticationError("Unauthorized")
        broker = repository.get_broker(db_session(), ctx.broker_id)
        if broker is None or not broker.is_admin:
            raise AuthorizationError("Forbidden")
        return fn(*args, **kwargs)

    return wrapped
