"""SQLAlchemy adapter for user lookup and persistence."""

from __future__ import annotations

from datetime import datetime
from typing import cast
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from auth_lifecycle.application.ports.user_repository_port import (
    DuplicateUserEmailError,
    UserCreateInput,
    UserRecord,
    UserRepositoryPort,
)
from auth_lifecycle.domain.auth.roles import Role
from auth_lifecycle.infrastructure.db.metadata import users

_USER_COLUMNS = (
    users.c.id,
    users.c.name,
    users.c.email,
    users.c.password_hash,
    users.c.role,
    users.c.is_active,
    users.c.last_login_at,
    users.c.created_at,
    users.c.updated_at,
)


def _is_duplicate_email_error(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "users.email" in message or "uq_users_email" in message


class SqlAlchemyUserRepository(UserRepositoryPort):
    """User repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, *, user_id: UUID) -> UserRecord | None:
        """Return user by id, including inactive users."""

        statement = sa.select(*_USER_COLUMNS).where(users.c.id == user_id).limit(1)
        return await self._fetch_one(statement)

    async def get_by_email(self, *, email: str) -> UserRecord | None:
        """Return user by normalized email, including inactive users."""

        statement = sa.select(*_USER_COLUMNS).where(users.c.email == email).limit(1)
        return await self._fetch_one(statement)

    async def get_active_by_id(self, *, user_id: UUID) -> UserRecord | None:
        """Return active user by id or None."""

        user = await self.get_by_id(user_id=user_id)
        if user is None or not user.is_active:
            return None
        return user

    async def create_user(self, payload: UserCreateInput) -> UserRecord:
        """Insert one user row and return the persisted record."""

        statement = (
            sa.insert(users)
            .values(
                id=uuid4(),
                name=payload.name,
                email=payload.email,
                password_hash=payload.password_hash,
                role=payload.role.value,
                is_active=True,
            )
            .returning(*_USER_COLUMNS)
        )

        async with self._session_factory() as session:
            try:
                result = await session.execute(statement)
                row = result.mappings().one()
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if _is_duplicate_email_error(exc):
                    raise DuplicateUserEmailError(email=payload.email) from exc
                raise

        return _to_user_record(row)

    async def record_login(self, *, user_id: UUID, logged_in_at: datetime) -> None:
        """Update last-login and updated-at timestamps for one user."""

        statement = (
            sa.update(users)
            .where(users.c.id == user_id)
            .values(last_login_at=logged_in_at, updated_at=logged_in_at)
        )

        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()

    async def _fetch_one(self, statement: sa.Select[tuple[object, ...]]) -> UserRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_user_record(row)


def _to_user_record(row: sa.RowMapping) -> UserRecord:
    raw_user_id = row["id"]
    user_id = raw_user_id if isinstance(raw_user_id, UUID) else UUID(str(raw_user_id))
    return UserRecord(
        user_id=user_id,
        name=cast(str, row["name"]),
        email=cast(str, row["email"]),
        password_hash=cast(str, row["password_hash"]),
        role=Role(cast(str, row["role"])),
        is_active=bool(row["is_active"]),
        last_login_at=cast(datetime | None, row["last_login_at"]),
        created_at=cast(datetime, row["created_at"]),
        updated_at=cast(datetime, row["updated_at"]),
    )
