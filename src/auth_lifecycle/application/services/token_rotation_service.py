"""Application service for refresh-token rotation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from auth_lifecycle.application.ports.token_service_port import TokenServicePort
from auth_lifecycle.application.ports.user_repository_port import ActiveUserLookupPort
from auth_lifecycle.domain.auth.tokens import TokenPair, TokenType

logger = logging.getLogger(__name__)


class RotationOutcome(StrEnum):
    """Supported rotation outcomes."""

    ROTATED = "rotated"
    INVALID_REFRESH_TOKEN = "invalid_refresh_token"


@dataclass(frozen=True)
class RotationResult:
    """Rotation result model; `reason` is for logs only, never for end users."""

    outcome: RotationOutcome
    tokens: TokenPair | None = None
    subject_id: str | None = None
    reason: str | None = None


class TokenRotationService:
    """Exchange a valid refresh token for a brand-new access/refresh pair.

    The presented refresh token is evaluated as-is and never extended. It is
    not invalidated server-side either: a rotated-out token stays verifiable
    until its own expiry.
    """

    def __init__(self, *, token_service: TokenServicePort, users: ActiveUserLookupPort) -> None:
        self._token_service = token_service
        self._users = users

    async def rotate(self, *, refresh_token: str) -> RotationResult:
        verification = self._token_service.verify(refresh_token)
        if verification.payload is None:
            reason = verification.failure.value if verification.failure else "malformed"
            return self._reject(reason=reason)

        payload = verification.payload
        if payload.token_type is not TokenType.REFRESH:
            return self._reject(reason="wrong_token_type", subject_id=payload.subject_id)

        try:
            user_id = UUID(payload.subject_id)
        except ValueError:
            return self._reject(reason="invalid_subject", subject_id=payload.subject_id)

        user = await self._users.get_active_by_id(user_id=user_id)
        if user is None:
            return self._reject(
                reason="subject_not_found_or_inactive",
                subject_id=payload.subject_id,
            )

        tokens = self._token_service.issue_token_pair(str(user.user_id), {"email": user.email})
        logger.info("token_rotation_succeeded subject_id=%s", user.user_id)
        return RotationResult(
            outcome=RotationOutcome.ROTATED,
            tokens=tokens,
            subject_id=str(user.user_id),
        )

    def _reject(self, *, reason: str, subject_id: str | None = None) -> RotationResult:
        logger.info("token_rotation_rejected reason=%s subject_id=%s", reason, subject_id)
        return RotationResult(
            outcome=RotationOutcome.INVALID_REFRESH_TOKEN,
            subject_id=subject_id,
            reason=reason,
        )
