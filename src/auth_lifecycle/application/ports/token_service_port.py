"""Port for signed access/refresh token issuance and verification."""

from __future__ import annotations

from typing import Any, Protocol

from auth_lifecycle.domain.auth.tokens import TokenPair, TokenVerification


class TokenServicePort(Protocol):
    """Token issuance/verification contract."""

    def issue_access_token(self, subject_id: str, claims: dict[str, Any] | None = None) -> str:
        """Issue a short-lived access token for one subject."""

    def issue_refresh_token(self, subject_id: str) -> str:
        """Issue a long-lived refresh token for one subject."""

    def issue_token_pair(
        self,
        subject_id: str,
        claims: dict[str, Any] | None = None,
    ) -> TokenPair:
        """Issue one access token and one refresh token for the same subject."""

    def verify(self, token: str) -> TokenVerification:
        """Verify signature, structure and expiry of a presented token."""
