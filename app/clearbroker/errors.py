from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import Flask, current_app, g, jsonify
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message}


class ValidationFailed(ApiError):
    status_code = 400

    def __init__(self, errors: list):
        # errors: list[validation.ValidationError]; first one is the headline
        super().__init__(errors[0].message if errors else "Invalid request")
        self.errors = errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "errors": [{"field": e.field, "message": e.message} for e in self.errors],
        }


class AuthenticationError(ApiError):
    status_code = 401


class AuthorizationError(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    # Duplicate email. Clients of the original API expect 400 here, not 409.
    status_code = 400


class RateLimited(ApiError):
    status_code = 429


def handle_unexpected(message: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Wrap a handler so any unclassified failure becomes a 500 with a generic
    message. The real cause is logged server-side only.
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            try:
                return fn(*args, **kwargs)
            except (ApiError, HTTPException):
                raise
            except Exception:
                s = getattr(g, "db_session", None)
                if s is not None:
                    s.rollback()
                current_app.logger.exception(
                    "%s (endpoint=%s request_id=%s)", message, fn.__name__, getattr(g, "request_id", None)
                )
                return jsonify({"message": message}), 500

        return wrapped

    return decorator


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def _api_error(e: ApiError):  # type: ignore[no-redef]
        if e.status_code in (401, 403):
            app.logger.info(
                "%s %s (request_id=%s)", e.status_code, e.message, getattr(g, "request_id", None)
            )
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):  # type: ignore[no-redef]
        return jsonify({"message": e.description or e.name}), e.code or 500

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"message": "Internal server error"}), 500
