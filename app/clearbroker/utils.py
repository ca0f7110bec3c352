from __future__ import annotations

from typing import Any

from flask import request

from app.clearbroker.errors import ValidationFailed
from app.clearbroker.validation import ValidationError, ValidationResult


def json_body() -> dict[str, Any]:
    """Parse the request body as a JSON object (missing body counts as empty)."""
    if not request.get_data(cache=True):
        return {}
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationFailed([ValidationError("body", "Request body must be a JSON object.")])
    return payload


def require_valid(result: ValidationResult) -> dict[str, Any]:
    if not result.ok:
        raise ValidationFailed(result.errors)
    return result.data or {}
