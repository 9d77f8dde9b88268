"""Pydantic models for signup, login, refresh and profile contracts."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from auth_lifecycle.application.ports.user_repository_port import UserRecord


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class SignupRequest(StrictModel):
    """HTTP request model for account registration."""

    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)


class LoginRequest(StrictModel):
    """HTTP request model for credential login."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)


class RefreshRequest(StrictModel):
    """HTTP request body for clients that do not carry the refresh cookie."""

    refresh_token: str | None = Field(default=None, repr=False)


class UserResponse(BaseModel):
    """Public user profile; never carries credential fields."""

    id: UUID
    name: str
    email: str
    role: str
    is_active: bool
    last_login_at: datetime | None
    created_at: datetime

    @classmethod
    def from_record(cls, user: UserRecord) -> UserResponse:
        return cls(
            id=user.user_id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            is_active=user.is_active,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
        )


class SignupResponse(BaseModel):
    """HTTP response model for a created account."""

    user: UserResponse
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int


class TokenResponse(BaseModel):
    """HTTP response model for issued access/refresh tokens."""

    access_token: str
    refresh_token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int


class LoginResponse(TokenResponse):
    """HTTP response model for a successful login."""

    user: UserResponse
