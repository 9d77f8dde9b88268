"""Shared normalization and policy helpers for user credential inputs."""

from __future__ import annotations

import re

from auth_lifecycle.domain.auth.errors import CredentialPolicyError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8
# bcrypt only consumes the first 72 bytes of input.
PASSWORD_MAX_BYTES = 72


def normalize_user_email(*, email: str) -> str:
    """Normalize one user email and reject blank or malformed values."""

    normalized = email.strip().lower()
    if not normalized:
        raise CredentialPolicyError("email cannot be blank")
    if EMAIL_PATTERN.match(normalized) is None:
        raise CredentialPolicyError("please enter a valid email address")
    return normalized


def normalize_user_name(*, name: str) -> str:
    """Trim one display name and enforce length bounds."""

    normalized = name.strip()
    if not normalized:
        raise CredentialPolicyError("name cannot be blank")
    if len(normalized) < NAME_MIN_LENGTH:
        raise CredentialPolicyError(f"name must be at least {NAME_MIN_LENGTH} characters long")
    if len(normalized) > NAME_MAX_LENGTH:
        raise CredentialPolicyError(f"name cannot exceed {NAME_MAX_LENGTH} characters")
    return normalized


def validate_user_password(*, password: str) -> str:
    """Enforce the signup password policy without altering the plaintext."""

    if not password:
        raise CredentialPolicyError("password cannot be blank")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise CredentialPolicyError(
            f"password must be at least {PASSWORD_MIN_LENGTH} characters long"
        )
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise CredentialPolicyError(f"password cannot exceed {PASSWORD_MAX_BYTES} bytes")
    return password
