"""Error taxonomy for credential and token lifecycle failures."""

from __future__ import annotations

from enum import StrEnum


class ConfigurationError(RuntimeError):
    """Raised when required runtime configuration is missing or invalid."""


class CredentialPolicyError(ValueError):
    """Raised when a submitted name, email or password violates account policy."""


class CredentialFormatError(ValueError):
    """Raised when a stored password hash cannot be parsed."""

    def __init__(self, message: str = "stored credential is malformed") -> None:
        super().__init__(message)


class VerificationFailure(StrEnum):
    """Reasons a presented token failed verification."""

    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"
    MALFORMED = "malformed"


class VerificationError(Exception):
    """Raised when a caller requires a verified token payload and none is available."""

    def __init__(self, failure: VerificationFailure) -> None:
        super().__init__(f"token verification failed: {failure.value}")
        self.failure = failure
