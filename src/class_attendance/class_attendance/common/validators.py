from __future__ import annotations

import re

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters long")
    return value


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if len(value) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return value


def require_email(value: str) -> str:
    email = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Please enter a valid email address")
    return email
