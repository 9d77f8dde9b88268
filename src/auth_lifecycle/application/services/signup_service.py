"""Application service for account registration."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum

from auth_lifecycle.application.ports.password_hasher_port import PasswordHasherPort
from auth_lifecycle.application.ports.token_service_port import TokenServicePort
from auth_lifecycle.application.ports.user_repository_port import (
    DuplicateUserEmailError,
    UserCreateInput,
    UserRecord,
    UserRepositoryPort,
)
from auth_lifecycle.domain.auth.credentials import (
    normalize_user_email,
    normalize_user_name,
    validate_user_password,
)

logger = logging.getLogger(__name__)


class SignupOutcome(StrEnum):
    """Supported registration outcomes."""

    CREATED = "created"
    EMAIL_TAKEN = "email_taken"


@dataclass(frozen=True)
class SignupResult:
    """Registration result model."""

    outcome: SignupOutcome
    user: UserRecord | None = None
    access_token: str | None = None


class SignupService:
    """Validate signup input, hash the password and persist a new account."""

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        password_hasher: PasswordHasherPort,
        token_service: TokenServicePort,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._token_service = token_service

    async def register(self, *, name: str, email: str, password: str) -> SignupResult:
        """Create one account and issue its first access token.

        Raises `CredentialPolicyError` with a user-safe message when an input
        violates the account policy.
        """

        normalized_name = normalize_user_name(name=name)
        normalized_email = normalize_user_email(email=email)
        validate_user_password(password=password)

        if await self._users.get_by_email(email=normalized_email) is not None:
            logger.info("signup_rejected reason=email_taken")
            return SignupResult(outcome=SignupOutcome.EMAIL_TAKEN)

        password_hash = await asyncio.to_thread(self._password_hasher.hash_password, password)
        try:
            user = await self._users.create_user(
                UserCreateInput(
                    name=normalized_name,
                    email=normalized_email,
                    password_hash=password_hash,
                )
            )
        except DuplicateUserEmailError:
            logger.info("signup_rejected reason=email_taken_concurrent")
            return SignupResult(outcome=SignupOutcome.EMAIL_TAKEN)

        access_token = self._token_service.issue_access_token(
            str(user.user_id),
            {"email": user.email},
        )
        logger.info("signup_created user_id=%s", user.user_id)
        return SignupResult(outcome=SignupOutcome.CREATED, user=user, access_token=access_token)
