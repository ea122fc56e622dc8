from __future__ import annotations

from typing import Optional

from email_validator import EmailNotValidError, validate_email

from app.core.errors import ValidationError


def require_text(value: Optional[str], field: str, *, max_length: Optional[int] = None) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"Field '{field}' is required")
    value = str(value).strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"Field '{field}' must be at most {max_length} characters")
    return value


def optional_text(value: Optional[str], field: str, *, max_length: Optional[int] = None) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    return require_text(value, field, max_length=max_length)


def normalize_email(value: Optional[str]) -> str:
    value = require_text(value, "email", max_length=320)
    try:
        result = validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email address: {e}") from e
    return result.normalized
