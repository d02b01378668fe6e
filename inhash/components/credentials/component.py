"""
Credential validation - functional core.

Pure and synchronous. Reports at most one error per field, naming the
specific rule that failed.
"""

from __future__ import annotations

import re

from inhash.domain.errors import ValidationError
from inhash.rules.models import Rules

from .models import ValidationOutput

# --- Email Validation Regex (RFC 5322 simplified) ---

EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

MAX_EMAIL_LENGTH = 254


def _check_email(email: str) -> ValidationError | None:
    normalized = email.strip() if email else ""
    if not normalized:
        return ValidationError("EMPTY_EMAIL", "Email address is required", "email")
    if len(normalized) > MAX_EMAIL_LENGTH:
        return ValidationError("EMAIL_TOO_LONG", "Email address is too long", "email")
    if not EMAIL_REGEX.match(normalized):
        return ValidationError("INVALID_EMAIL", "Email address is not valid", "email")
    return None


def _check_password(password: str, min_length: int | None) -> ValidationError | None:
    if not password:
        return ValidationError("EMPTY_PASSWORD", "Password is required", "password")
    if min_length is not None and len(password) < min_length:
        return ValidationError(
            "PASSWORD_TOO_SHORT",
            f"Password must be at least {min_length} characters",
            "password",
        )
    return None


def _check_student_id(student_id: str, max_length: int) -> ValidationError | None:
    normalized = student_id.strip() if student_id else ""
    if not normalized:
        return ValidationError("EMPTY_STUDENT_ID", "Student ID is required", "student_id")
    # str.isdigit accepts superscripts and other unicode digits
    if not normalized.isascii() or not normalized.isdigit():
        return ValidationError(
            "NON_NUMERIC_STUDENT_ID", "Student ID must contain digits only", "student_id"
        )
    if len(normalized) > max_length:
        return ValidationError("STUDENT_ID_TOO_LONG", "Student ID is too long", "student_id")
    return None


def validate_app_credentials(
    email: str,
    password: str,
    *,
    for_signup: bool = False,
    rules: Rules | None = None,
) -> ValidationOutput:
    """
    Validate app account credentials.

    Password length is only enforced for signup; login accepts any non-empty
    password and lets the backend decide.
    """
    rules = rules or Rules()
    min_length = rules.validation.password_min_length if for_signup else None

    errors = [
        e
        for e in (_check_email(email), _check_password(password, min_length))
        if e is not None
    ]
    return ValidationOutput(is_valid=not errors, errors=errors)


def validate_lms_credentials(
    student_id: str,
    password: str,
    *,
    rules: Rules | None = None,
) -> ValidationOutput:
    """Validate LMS credentials (numeric student ID + non-empty password)."""
    rules = rules or Rules()

    errors = [
        e
        for e in (
            _check_student_id(student_id, rules.validation.student_id_max_length),
            _check_password(password, None),
        )
        if e is not None
    ]
    return ValidationOutput(is_valid=not errors, errors=errors)
