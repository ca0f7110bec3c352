from __future__ import annotations

from dataclasses import dataclass

from flask import g


@dataclass(frozen=True)
class RequestContext:
    """
    Per-request identity, built once in before_request and passed explicitly to
    services and the audit trail.
    """

    request_id: str
    broker_id: str | None = None
    session_id: str | None = None
    client_ip: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.broker_id is not None


def current_context() -> RequestContext:
    ctx = getattr(g, "ctx", None)
    if ctx is None:
        raise RuntimeError("No request context (load_current_broker did not run)")
    return ctx
