"""auth-api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

from auth_lifecycle.application.ports.user_repository_port import UserRepositoryPort
from auth_lifecycle.application.services.auth_service import AuthService
from auth_lifecycle.application.services.signup_service import SignupService
from auth_lifecycle.application.services.token_rotation_service import TokenRotationService
from auth_lifecycle.config.settings import Settings, build_token_config, load_settings
from auth_lifecycle.infrastructure.db.session import create_session_factory
from auth_lifecycle.infrastructure.db.user_repository import SqlAlchemyUserRepository
from auth_lifecycle.infrastructure.http.auth_guard import BearerAuthGuard
from auth_lifecycle.infrastructure.http.auth_router import build_auth_router
from auth_lifecycle.infrastructure.logging import configure_logging
from auth_lifecycle.infrastructure.security.password_hasher import BcryptPasswordHasher
from auth_lifecycle.infrastructure.security.token_service import JwtTokenService

AUTH_API_HOST = "0.0.0.0"
AUTH_API_PORT = 8000
logger = logging.getLogger(__name__)


def build_user_repository(database_url: str) -> UserRepositoryPort:
    """Build user repository with a SQLAlchemy session factory."""

    session_factory = create_session_factory(database_url)
    return SqlAlchemyUserRepository(session_factory)


def create_app(
    *,
    settings: Settings | None = None,
    users: UserRepositoryPort | None = None,
    password_hasher: BcryptPasswordHasher | None = None,
    token_service: JwtTokenService | None = None,
) -> FastAPI:
    """Create FastAPI app exposing signup, login, refresh and profile routes.

    Missing or invalid configuration raises `ConfigurationError` before any
    route is registered.
    """

    if settings is None:
        settings = load_settings()
    configure_logging(level=settings.log_level)

    if users is None:
        users = build_user_repository(settings.database_url)
    if password_hasher is None:
        password_hasher = BcryptPasswordHasher(rounds=settings.bcrypt_rounds)
    if token_service is None:
        token_service = JwtTokenService(config=build_token_config(settings))

    app = FastAPI(title="auth-api")
    app.include_router(
        build_auth_router(
            signup_service=SignupService(
                users=users,
                password_hasher=password_hasher,
                token_service=token_service,
            ),
            auth_service=AuthService(
                users=users,
                password_hasher=password_hasher,
                token_service=token_service,
            ),
            rotation_service=TokenRotationService(token_service=token_service, users=users),
            auth_guard=BearerAuthGuard(token_service=token_service, users=users),
            access_token_ttl_seconds=int(token_service.access_token_ttl.total_seconds()),
            refresh_token_ttl_seconds=int(token_service.refresh_token_ttl.total_seconds()),
            refresh_cookie_secure=settings.refresh_cookie_secure,
        )
    )
    logger.info(
        "auth_api_configured access_ttl_seconds=%s refresh_ttl_seconds=%s",
        int(token_service.access_token_ttl.total_seconds()),
        int(token_service.refresh_token_ttl.total_seconds()),
    )
    return app


def run_asgi_server(*, host: str = AUTH_API_HOST, port: int = AUTH_API_PORT) -> None:
    """Run auth-api as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.auth_api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run auth-api runtime process."""

    run_asgi_server()


if __name__ == "__main__":
    main()
