"""Bearer header parsing and access-token guard helpers."""

from __future__ import annotations

import logging
from uuid import UUID

from auth_lifecycle.application.ports.token_service_port import TokenServicePort
from auth_lifecycle.application.ports.user_repository_port import ActiveUserLookupPort, UserRecord
from auth_lifecycle.domain.auth.errors import VerificationError
from auth_lifecycle.domain.auth.tokens import TokenType

logger = logging.getLogger(__name__)


class MissingAuthTokenError(PermissionError):
    """Raised when a bearer token is required but not provided."""


class InvalidAuthTokenError(PermissionError):
    """Raised when bearer token header or token contents are invalid."""


def extract_bearer_token(authorization_header: str | None) -> str:
    """Extract token from standard `Authorization: Bearer <token>` header."""

    if authorization_header is None or not authorization_header.strip():
        raise MissingAuthTokenError("missing bearer token")

    parts = authorization_header.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise InvalidAuthTokenError("invalid bearer token header")

    return parts[1]


class BearerAuthGuard:
    """Resolve the active caller behind an access token."""

    def __init__(self, *, token_service: TokenServicePort, users: ActiveUserLookupPort) -> None:
        self._token_service = token_service
        self._users = users

    async def require_active_user(self, *, authorization_header: str | None) -> UserRecord:
        """Resolve bearer access token to an active persisted user record."""

        token = extract_bearer_token(authorization_header)
        try:
            payload = self._token_service.verify(token).require_payload()
        except VerificationError as exc:
            logger.info("access_token_rejected reason=%s", exc.failure.value)
            raise InvalidAuthTokenError("invalid or expired access token") from exc

        if payload.token_type is not TokenType.ACCESS:
            logger.info("access_token_rejected reason=wrong_token_type")
            raise InvalidAuthTokenError("invalid or expired access token")

        try:
            user_id = UUID(payload.subject_id)
        except ValueError as exc:
            raise InvalidAuthTokenError("invalid or expired access token") from exc

        user = await self._users.get_active_by_id(user_id=user_id)
        if user is None:
            logger.info("access_token_rejected reason=subject_not_found_or_inactive")
            raise InvalidAuthTokenError("invalid or expired access token")

        return user
