"""JWT access/refresh token service backed by PyJWT."""

from __future__ import annotations

import math
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from auth_lifecycle.application.ports.token_service_port import TokenServicePort
from auth_lifecycle.domain.auth.errors import ConfigurationError, VerificationFailure
from auth_lifecycle.domain.auth.tokens import (
    RESERVED_CLAIMS,
    TokenPair,
    TokenPayload,
    TokenType,
    TokenVerification,
    validate_extra_claims,
)

SUPPORTED_ALGORITHMS = ("HS256", "HS384", "HS512")
DEFAULT_ACCESS_TOKEN_TTL = timedelta(hours=1)
DEFAULT_REFRESH_TOKEN_TTL = timedelta(days=7)
_REQUIRED_CLAIMS = ["sub", "type", "exp", "iat", "jti"]


@dataclass(frozen=True)
class TokenConfig:
    """Signing secret, algorithm and lifetimes shared by all issued tokens."""

    secret: str = field(repr=False)
    algorithm: str = "HS256"
    access_token_ttl: timedelta = DEFAULT_ACCESS_TOKEN_TTL
    refresh_token_ttl: timedelta = DEFAULT_REFRESH_TOKEN_TTL

    def __post_init__(self) -> None:
        if not self.secret or not self.secret.strip():
            raise ConfigurationError("token signing secret is required")
        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"unsupported token algorithm: {self.algorithm}")
        if self.access_token_ttl <= timedelta(0) or self.refresh_token_ttl <= timedelta(0):
            raise ConfigurationError("token lifetimes must be positive")


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _random_token_id() -> str:
    return secrets.token_hex(16)


class JwtTokenService(TokenServicePort):
    """Issue and verify signed, typed, time-limited tokens."""

    def __init__(
        self,
        *,
        config: TokenConfig,
        now: Callable[[], datetime] = _utc_now,
        token_id_factory: Callable[[], str] = _random_token_id,
    ) -> None:
        self._config = config
        self._now = now
        self._token_id_factory = token_id_factory

    @property
    def access_token_ttl(self) -> timedelta:
        return self._config.access_token_ttl

    @property
    def refresh_token_ttl(self) -> timedelta:
        return self._config.refresh_token_ttl

    def issue_access_token(self, subject_id: str, claims: dict[str, Any] | None = None) -> str:
        """Issue an access token, merging non-sensitive caller claims into the payload."""

        extra = validate_extra_claims(claims or {})
        return self._encode(
            subject_id=subject_id,
            token_type=TokenType.ACCESS,
            ttl=self._config.access_token_ttl,
            extra=extra,
        )

    def issue_refresh_token(self, subject_id: str) -> str:
        """Issue a refresh token carrying only the required fields."""

        return self._encode(
            subject_id=subject_id,
            token_type=TokenType.REFRESH,
            ttl=self._config.refresh_token_ttl,
            extra={},
        )

    def issue_token_pair(
        self,
        subject_id: str,
        claims: dict[str, Any] | None = None,
    ) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(subject_id, claims),
            refresh_token=self.issue_refresh_token(subject_id),
            access_token_expires_in=int(self._config.access_token_ttl.total_seconds()),
            refresh_token_expires_in=int(self._config.refresh_token_ttl.total_seconds()),
        )

    def verify(self, token: str) -> TokenVerification:
        """Validate signature and structure, then check expiry against the service clock.

        Expiry is never delegated to PyJWT: issuance and verification share one clock.
        """

        try:
            decoded = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": _REQUIRED_CLAIMS,
                },
            )
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError):
            return TokenVerification(failure=VerificationFailure.SIGNATURE_INVALID)
        except jwt.PyJWTError:
            return TokenVerification(failure=VerificationFailure.MALFORMED)

        payload = _to_token_payload(decoded)
        if payload is None:
            return TokenVerification(failure=VerificationFailure.MALFORMED)

        if self._now() >= payload.expires_at:
            return TokenVerification(failure=VerificationFailure.EXPIRED)

        return TokenVerification(payload=payload)

    def _encode(
        self,
        *,
        subject_id: str,
        token_type: TokenType,
        ttl: timedelta,
        extra: dict[str, Any],
    ) -> str:
        if not subject_id:
            raise ValueError("subject_id cannot be empty")

        issued_at = self._now()
        to_encode: dict[str, Any] = {
            **extra,
            "sub": subject_id,
            "type": token_type.value,
            "iat": int(issued_at.timestamp()),
            "exp": math.ceil((issued_at + ttl).timestamp()),
            "jti": self._token_id_factory(),
        }
        return jwt.encode(to_encode, self._config.secret, algorithm=self._config.algorithm)


def _to_token_payload(decoded: dict[str, Any]) -> TokenPayload | None:
    """Map decoded claims to a payload, or None when required fields have wrong shapes."""

    subject_id = decoded.get("sub")
    raw_type = decoded.get("type")
    raw_exp = decoded.get("exp")
    raw_iat = decoded.get("iat")
    token_id = decoded.get("jti")

    if not isinstance(subject_id, str) or not subject_id:
        return None
    if not isinstance(token_id, str) or not token_id:
        return None
    if not _is_timestamp(raw_exp) or not _is_timestamp(raw_iat):
        return None
    try:
        token_type = TokenType(raw_type)
        expires_at = datetime.fromtimestamp(raw_exp, tz=UTC)
        issued_at = datetime.fromtimestamp(raw_iat, tz=UTC)
    except (ValueError, OverflowError, OSError):
        return None

    return TokenPayload(
        subject_id=subject_id,
        token_type=token_type,
        expires_at=expires_at,
        issued_at=issued_at,
        token_id=token_id,
        claims={key: value for key, value in decoded.items() if key not in RESERVED_CLAIMS},
    )


def _is_timestamp(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)
