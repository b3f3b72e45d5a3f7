"""Shared validation utilities

Each validator returns a ValidationResult instead of raising, so callers can
render field-level feedback.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
FRENCH_PHONE_PATTERN = re.compile(r"^(\+33|0033|0)?[1-9][0-9]{8}$")
INTERNATIONAL_PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{6,14}$")

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 72
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
SIGN_UP_ROLES = ("client", "coiffeur")


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class SignUpValidation:
    is_valid: bool
    errors: dict = field(default_factory=dict)


VALID = ValidationResult(is_valid=True)


def _invalid(message: str) -> ValidationResult:
    return ValidationResult(is_valid=False, error=message)


def validate_email(email: Optional[str]) -> ValidationResult:
    """Validate email format"""
    if not email:
        return _invalid("Email is required")

    if not EMAIL_PATTERN.match(email):
        return _invalid("Invalid email format")

    return VALID


def validate_password(password: Optional[str]) -> ValidationResult:
    """
    Validate a sign-up password.

    6 to 72 characters (bcrypt truncates beyond 72 bytes), with at least one
    letter and one digit.
    """
    if not password:
        return _invalid("Password is required")
    if len(password) < PASSWORD_MIN_LENGTH:
        return _invalid(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        return _invalid(f"Password cannot exceed {PASSWORD_MAX_LENGTH} characters")

    has_letter = re.search(r"[a-zA-Z]", password) is not None
    has_digit = re.search(r"[0-9]", password) is not None
    if not has_letter or not has_digit:
        return _invalid("Password must contain at least one letter and one digit")

    return VALID


def validate_full_name(name: Optional[str]) -> ValidationResult:
    if not name:
        return _invalid("Full name is required")
    if len(name) < NAME_MIN_LENGTH:
        return _invalid(f"Name must be at least {NAME_MIN_LENGTH} characters")
    if len(name) > NAME_MAX_LENGTH:
        return _invalid(f"Name cannot exceed {NAME_MAX_LENGTH} characters")
    return VALID


def validate_phone(phone: Optional[str]) -> ValidationResult:
    """
    Validate an optional phone number.

    Spaces, dashes and dots are ignored. French numbers (0X, +33, 0033) and
    international E.164-like numbers are accepted.
    """
    if not phone:
        return VALID

    cleaned = re.sub(r"[\s\-.]", "", phone)
    if FRENCH_PHONE_PATTERN.match(cleaned) or INTERNATIONAL_PHONE_PATTERN.match(cleaned):
        return VALID

    return _invalid("Invalid phone number")


def validate_sign_up(
    email: Optional[str],
    password: Optional[str],
    full_name: Optional[str],
    phone: Optional[str] = None,
    role: Optional[str] = None,
) -> SignUpValidation:
    """Validate every sign-up field, collecting one error per failing field"""
    errors = {}

    checks = {
        "email": validate_email(email),
        "password": validate_password(password),
        "full_name": validate_full_name(full_name),
        "phone": validate_phone(phone),
    }
    for field_name, result in checks.items():
        if not result.is_valid:
            errors[field_name] = result.error

    if role and role not in SIGN_UP_ROLES:
        errors["role"] = 'Role must be "client" or "coiffeur"'

    return SignUpValidation(is_valid=not errors, errors=errors)
