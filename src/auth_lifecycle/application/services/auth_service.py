"""Application authentication service for credential verification."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from auth_lifecycle.application.ports.password_hasher_port import PasswordHasherPort
from auth_lifecycle.application.ports.token_service_port import TokenServicePort
from auth_lifecycle.application.ports.user_repository_port import UserRecord, UserRepositoryPort
from auth_lifecycle.domain.auth.errors import CredentialFormatError
from auth_lifecycle.domain.auth.tokens import TokenPair

logger = logging.getLogger(__name__)


class AuthOutcome(StrEnum):
    """Supported authentication outcomes."""

    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    INACTIVE_USER = "inactive_user"


@dataclass(frozen=True)
class AuthResult:
    """Authentication result model."""

    outcome: AuthOutcome
    user: UserRecord | None = None
    tokens: TokenPair | None = None


class AuthService:
    """Authenticate credentials and issue an access/refresh token pair."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        password_hasher: PasswordHasherPort,
        token_service: TokenServicePort,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._token_service = token_service
        self._now = now or (lambda: datetime.now(tz=UTC))

    async def authenticate(self, *, email: str, password: str) -> AuthResult:
        """Authenticate user credentials.

        Unknown email and wrong password share one outcome. Account status is
        only reported once the password has matched. A corrupted stored
        hash raises `CredentialFormatError` instead of reading as a mismatch.
        """

        user = await self._users.get_by_email(email=email.strip().lower())
        if user is None:
            logger.info("login_failed reason=invalid_credentials")
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)

        try:
            is_valid = await asyncio.to_thread(
                self._verify_password,
                password,
                user.password_hash,
            )
        except CredentialFormatError:
            logger.error("login_credential_malformed user_id=%s", user.user_id)
            raise

        if not is_valid:
            logger.info("login_failed reason=invalid_credentials user_id=%s", user.user_id)
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)

        if not user.is_active:
            logger.info("login_blocked_inactive user_id=%s", user.user_id)
            return AuthResult(outcome=AuthOutcome.INACTIVE_USER)

        await self._users.record_login(user_id=user.user_id, logged_in_at=self._now())
        tokens = self._token_service.issue_token_pair(str(user.user_id), {"email": user.email})
        logger.info("login_success user_id=%s", user.user_id)
        return AuthResult(outcome=AuthOutcome.SUCCESS, user=user, tokens=tokens)

    def _verify_password(self, password: str, password_hash: str) -> bool:
        return self._password_hasher.verify_password(
            password=password,
            password_hash=password_hash,
        )
