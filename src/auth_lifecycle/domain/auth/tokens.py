"""Token types, decoded payloads and verification results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from auth_lifecycle.domain.auth.errors import VerificationError, VerificationFailure

RESERVED_CLAIMS = frozenset({"sub", "type", "exp", "iat", "jti"})
FORBIDDEN_CLAIMS = frozenset({"password", "password_hash"})


class TokenType(StrEnum):
    """Declared purpose of a signed token."""

    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPayload:
    """Decoded and verified token contents."""

    subject_id: str
    token_type: TokenType
    expires_at: datetime
    issued_at: datetime
    token_id: str
    claims: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of verifying one token: a payload or a failure reason."""

    payload: TokenPayload | None = None
    failure: VerificationFailure | None = None

    @property
    def is_valid(self) -> bool:
        return self.payload is not None

    def require_payload(self) -> TokenPayload:
        """Return the verified payload or raise `VerificationError`."""

        if self.payload is None:
            raise VerificationError(self.failure or VerificationFailure.MALFORMED)
        return self.payload


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh tokens minted together for one subject."""

    access_token: str
    refresh_token: str
    access_token_expires_in: int
    refresh_token_expires_in: int


def validate_extra_claims(claims: dict[str, Any]) -> dict[str, Any]:
    """Reject caller claims that would shadow reserved fields or carry credentials."""

    reserved = RESERVED_CLAIMS.intersection(claims)
    if reserved:
        raise ValueError(f"claims cannot override reserved fields: {sorted(reserved)}")
    forbidden = FORBIDDEN_CLAIMS.intersection(claims)
    if forbidden:
        raise ValueError(f"claims cannot carry credential fields: {sorted(forbidden)}")
    return dict(claims)
