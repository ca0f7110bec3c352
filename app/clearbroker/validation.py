"""
Input validators, one per request shape.

Each validator returns a ValidationResult: either ok with a cleaned `data` dict,
or not ok with the list of field errors in rule order. Handlers report the
first error's message as the headline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from app.clearbroker.constants import (
    CUSTOMER_STATUSES,
    CUSTOMER_TYPES,
    EMAIL_PATTERN,
    GSTIN_PATTERN,
    MIN_NAME_LENGTH,
    MIN_PASSWORD_LENGTH,
)


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    data: dict[str, Any] | None = None
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def success(cls, data: dict[str, Any]) -> "ValidationResult":
        return cls(data=data)

    @classmethod
    def failure(cls, errors: list[ValidationError]) -> "ValidationResult":
        return cls(errors=list(errors))


def _text(payload: dict[str, Any], key: str) -> str | None:
    v = payload.get(key)
    if isinstance(v, str):
        return v.strip()
    return None


def _check_name(payload: dict[str, Any], errs: list[ValidationError]) -> str:
    name = _text(payload, "name")
    if name is None:
        errs.append(ValidationError("name", "Name is required."))
        return ""
    if len(name) < MIN_NAME_LENGTH:
        errs.append(ValidationError("name", f"Name must be at least {MIN_NAME_LENGTH} characters"))
    return name


def _check_email(payload: dict[str, Any], errs: list[ValidationError]) -> str:
    email = _text(payload, "email")
    if email is None:
        errs.append(ValidationError("email", "Email is required."))
        return ""
    if not EMAIL_PATTERN.match(email):
        errs.append(ValidationError("email", "Invalid email address"))
    return email


def validate_register_payload(payload: dict[str, Any]) -> ValidationResult:
    errs: list[ValidationError] = []

    name = _check_name(payload, errs)
    email = _check_email(payload, errs).lower()

    password = payload.get("password")
    if not isinstance(password, str):
        errs.append(ValidationError("password", "Password is required."))
        password = ""
    elif len(password) < MIN_PASSWORD_LENGTH:
        errs.append(ValidationError("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters"))

    company_name = payload.get("companyName")
    if company_name is not None and not isinstance(company_name, str):
        errs.append(ValidationError("companyName", "Company name must be text."))
        company_name = None
    company_name = (company_name or "").strip() or None

    if errs:
        return ValidationResult.failure(errs)
    return ValidationResult.success(
        {"name": name, "email": email, "password": password, "company_name": company_name}
    )


def validate_login_payload(payload: dict[str, Any]) -> ValidationResult:
    errs: list[ValidationError] = []

    email = _check_email(payload, errs).lower()

    password = payload.get("password")
    if not isinstance(password, str) or not password:
        errs.append(ValidationError("password", "Password is required"))
        password = ""

    if errs:
        return ValidationResult.failure(errs)
    return ValidationResult.success({"email": email, "password": password})


def validate_customer_payload(payload: dict[str, Any]) -> ValidationResult:
    """
    Client-supplied `status` and `brokerId` are not part of this shape and are
    dropped; the server assigns both.
    """
    errs: list[ValidationError] = []

    name = _check_name(payload, errs)
    email = _check_email(payload, errs)

    gstin = _text(payload, "gstin")
    if gstin is None:
        errs.append(ValidationError("gstin", "GSTIN is required."))
    elif not GSTIN_PATTERN.match(gstin):
        errs.append(ValidationError("gstin", "Invalid GSTIN format"))

    ctype = payload.get("type")
    if ctype not in CUSTOMER_TYPES:
        errs.append(ValidationError("type", f"Type must be one of: {', '.join(CUSTOMER_TYPES)}"))

    if errs:
        return ValidationResult.failure(errs)
    return ValidationResult.success({"name": name, "email": email, "gstin": gstin, "type": ctype})


def validate_status_payload(payload: dict[str, Any]) -> ValidationResult:
    status = payload.get("status")
    if status not in CUSTOMER_STATUSES:
        return ValidationResult.failure([ValidationError("status", "Invalid status")])
    return ValidationResult.success({"status": status})
