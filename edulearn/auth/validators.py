"""Validation utilities for signup and account input.

Provides validation for:
- Email format and normalization
- Display name and institution length
- Password strength
"""

import re
from typing import NamedTuple


# ==============================================================================
# Constants for validation rules
# ==============================================================================

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100

INSTITUTION_MIN_LENGTH = 3
INSTITUTION_MAX_LENGTH = 150

PASSWORD_MIN_LENGTH = 8

_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


class ValidationResult(NamedTuple):
    """Result of a validation check."""

    valid: bool
    message: str | None = None
    formatted: str | None = None


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address.

    Example:
        >>> normalize_email("  Ana@School.EDU ")
        'ana@school.edu'
    """
    return email.strip().lower()


def validate_email(email: str) -> ValidationResult:
    """Check email syntax, returning the normalized address when valid.

    Examples:
        >>> validate_email("User@Example.com")
        ValidationResult(valid=True, message=None, formatted='user@example.com')
        >>> validate_email("invalid-email")
        ValidationResult(valid=False, message='Invalid email address', formatted=None)
    """
    normalized = normalize_email(email)
    if _EMAIL_PATTERN.match(normalized):
        return ValidationResult(True, formatted=normalized)
    return ValidationResult(False, "Invalid email address")


def _validate_text(value: str, label: str, min_length: int, max_length: int) -> ValidationResult:
    trimmed = value.strip()
    if not trimmed:
        return ValidationResult(False, f"{label} is required")
    if len(trimmed) < min_length or len(trimmed) > max_length:
        return ValidationResult(
            False, f"{label} must be between {min_length} and {max_length} characters"
        )
    return ValidationResult(True, formatted=trimmed)


def validate_name(name: str) -> ValidationResult:
    """Validate a display name (trimmed, 2-100 characters)."""
    return _validate_text(name, "Name", NAME_MIN_LENGTH, NAME_MAX_LENGTH)


def validate_institution(institution: str) -> ValidationResult:
    """Validate a college/institution name (trimmed, 3-150 characters)."""
    return _validate_text(
        institution, "Institution", INSTITUTION_MIN_LENGTH, INSTITUTION_MAX_LENGTH
    )


def validate_password(password: str) -> ValidationResult:
    """Validate password strength.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit

    Examples:
        >>> validate_password("Abcdef12")
        ValidationResult(valid=True, message=None, formatted=None)
        >>> validate_password("weak")
        ValidationResult(valid=False, message='Password must be at least 8 characters', formatted=None)
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        return ValidationResult(False, "Password must be at least 8 characters")

    if not re.search(r"[A-Z]", password):
        return ValidationResult(False, "Password must contain an uppercase letter")

    if not re.search(r"[a-z]", password):
        return ValidationResult(False, "Password must contain a lowercase letter")

    if not re.search(r"\d", password):
        return ValidationResult(False, "Password must contain a number")

    return ValidationResult(True)
