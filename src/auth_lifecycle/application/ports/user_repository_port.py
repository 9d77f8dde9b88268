"""Port for user lookup and persistence operations used by authentication services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol
from uuid import UUID

from auth_lifecycle.domain.auth.roles import Role


class DuplicateUserEmailError(ValueError):
    """Raised when a user with the same normalized email already exists."""

    def __init__(self, *, email: str) -> None:
        super().__init__(f"email already registered: {email}")
        self.email = email


@dataclass(frozen=True)
class UserRecord:
    """User persistence model."""

    user_id: UUID
    name: str
    email: str
    password_hash: str = field(repr=False)
    role: Role
    is_active: bool
    last_login_at: datetime | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UserCreateInput:
    """Input payload for inserting one user account."""

    name: str
    email: str
    password_hash: str = field(repr=False)
    role: Role = Role.USER


class ActiveUserLookupPort(Protocol):
    """Subject lookup contract consumed by token rotation and bearer guards."""

    async def get_active_by_id(self, *, user_id: UUID) -> UserRecord | None:
        """Return user by id when it exists and is active, otherwise None."""


class UserRepositoryPort(ActiveUserLookupPort, Protocol):
    """User repository contract."""

    async def get_by_id(self, *, user_id: UUID) -> UserRecord | None:
        """Return user by id, including inactive users."""

    async def get_by_email(self, *, email: str) -> UserRecord | None:
        """Return user by normalized email, including inactive users."""

    async def create_user(self, payload: UserCreateInput) -> UserRecord:
        """Persist a new user and return it, raising on duplicate email."""

    async def record_login(self, *, user_id: UUID, logged_in_at: datetime) -> None:
        """Store the last successful login instant for one user."""
