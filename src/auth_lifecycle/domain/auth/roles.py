"""User role enum persisted with each account."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Supported account roles."""

    USER = "user"
    ADMIN = "admin"
    MODERATOR = "moderator"
