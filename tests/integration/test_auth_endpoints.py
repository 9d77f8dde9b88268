from __future__ import annotations

from pathlib import Path
from uuid import UUID, uuid4

import sqlalchemy as sa
from alembic.config import Config
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from alembic import command
from apps.auth_api.main import create_app
from auth_lifecycle.config.settings import Settings, build_token_config
from auth_lifecycle.domain.auth.tokens import TokenType
from auth_lifecycle.infrastructure.security.password_hasher import BcryptPasswordHasher
from auth_lifecycle.infrastructure.security.token_service import JwtTokenService

SECRET = "endpoint-test-signing-secret-0123456789"


def _upgrade_head(tmp_path: Path, filename: str) -> tuple[str, str]:
    db_path = tmp_path / filename
    sync_url = f"sqlite+pysqlite:///{db_path}"
    async_url = f"sqlite+aiosqlite:///{db_path}"

    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", sync_url)
    command.upgrade(alembic_config, "head")

    return sync_url, async_url


def _settings(async_url: str) -> Settings:
    return Settings(  # type: ignore[call-arg]
        _env_file=None,
        JWT_SECRET=SECRET,
        DATABASE_URL=async_url,
        BCRYPT_ROUNDS=4,
        REFRESH_COOKIE_SECURE=False,
    )


def _token_service(async_url: str) -> JwtTokenService:
    return JwtTokenService(config=build_token_config(_settings(async_url)))


def _insert_user(
    connection: sa.Connection,
    *,
    user_id: UUID,
    email: str,
    password_hash: str,
    is_active: bool = True,
) -> None:
    connection.execute(
        sa.text(
            "INSERT INTO users (id, name, email, password_hash, role, is_active) "
            "VALUES (:id, :name, :email, :password_hash, :role, :is_active)"
        ),
        {
            "id": user_id.hex,
            "name": "Seeded User",
            "email": email,
            "password_hash": password_hash,
            "role": "user",
            "is_active": is_active,
        },
    )


def _seed_user(sync_url: str, *, email: str, password: str, is_active: bool = True) -> UUID:
    user_id = uuid4()
    engine = sa.create_engine(sync_url)
    with engine.begin() as connection:
        _insert_user(
            connection,
            user_id=user_id,
            email=email,
            password_hash=BcryptPasswordHasher(rounds=4).hash_password(password),
            is_active=is_active,
        )
    return user_id


def _set_active(sync_url: str, *, user_id: UUID, is_active: bool) -> None:
    engine = sa.create_engine(sync_url)
    with engine.begin() as connection:
        connection.execute(
            sa.text("UPDATE users SET is_active = :is_active WHERE id = :id"),
            {"is_active": is_active, "id": user_id.hex},
        )


def _build_client(async_url: str) -> TestClient:
    return TestClient(create_app(settings=_settings(async_url)))


def test_route_paths_are_auth_lifecycle_endpoints(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "routes.db")

    with _build_client(async_url) as client:
        paths = {route.path for route in client.app.routes if isinstance(route, APIRoute)}

    assert paths == {"/auth/signup", "/auth/login", "/auth/refresh", "/auth/me"}


def test_signup_creates_user_and_returns_access_token(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "signup_success.db")

    with _build_client(async_url) as client:
        response = client.post(
            "/auth/signup",
            json={"name": "Jane Doe", "email": "Jane@Example.org", "password": "Secret123!"},
        )

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "jane@example.org"
    assert body["user"]["name"] == "Jane Doe"
    assert body["user"]["role"] == "user"
    assert "password" not in body["user"]
    assert "password_hash" not in body["user"]
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 3600

    payload = _token_service(async_url).verify(body["access_token"]).require_payload()
    assert payload.token_type is TokenType.ACCESS
    assert payload.subject_id == body["user"]["id"]

    engine = sa.create_engine(sync_url)
    with engine.begin() as connection:
        stored = connection.execute(
            sa.text("SELECT password_hash FROM users WHERE email = 'jane@example.org'")
        ).mappings().one()

    assert stored["password_hash"] != "Secret123!"
    assert BcryptPasswordHasher(rounds=4).verify_password(
        password="Secret123!",
        password_hash=stored["password_hash"],
    )


def test_signup_duplicate_email_returns_conflict(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "signup_duplicate.db")
    _seed_user(sync_url, email="jane@example.org", password="Secret123!")

    with _build_client(async_url) as client:
        response = client.post(
            "/auth/signup",
            json={"name": "Jane Doe", "email": "jane@example.org", "password": "Another123!"},
        )

    assert response.status_code == 409
    assert response.json() == {"detail": "email already registered"}


def test_signup_rejects_short_password(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "signup_short.db")

    with _build_client(async_url) as client:
        response = client.post(
            "/auth/signup",
            json={"name": "Jane Doe", "email": "jane@example.org", "password": "short"},
        )

    assert response.status_code == 400
    assert response.json() == {"detail": "password must be at least 8 characters long"}


def test_signup_rejects_non_json_and_invalid_json(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "signup_bad_body.db")

    with _build_client(async_url) as client:
        form_response = client.post("/auth/signup", data={"name": "Jane"})
        invalid_response = client.post(
            "/auth/signup",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        missing_response = client.post("/auth/signup", json={"email": "jane@example.org"})

    assert form_response.status_code == 400
    assert form_response.json() == {"detail": "content-type must be application/json"}
    assert invalid_response.status_code == 400
    assert invalid_response.json() == {"detail": "invalid json format"}
    assert missing_response.status_code == 400
    assert missing_response.json() == {"detail": "name, email and password are required"}


def test_login_returns_token_pair_and_sets_refresh_cookie(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "login_success.db")
    user_id = _seed_user(sync_url, email="jane@example.org", password="Secret123!")

    with _build_client(async_url) as client:
        response = client.post(
            "/auth/login",
            json={"email": "jane@example.org", "password": "Secret123!"},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["id"] == str(user_id)
    assert body["user"]["last_login_at"] is None
    assert body["expires_in"] == 3600

    tokens = _token_service(async_url)
    access = tokens.verify(body["access_token"]).require_payload()
    refresh = tokens.verify(body["refresh_token"]).require_payload()
    assert access.token_type is TokenType.ACCESS
    assert access.subject_id == str(user_id)
    assert access.claims == {"email": "jane@example.org"}
    assert refresh.token_type is TokenType.REFRESH

    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"refresh_token={body['refresh_token']}")
    assert "HttpOnly" in set_cookie
    assert "Max-Age=604800" in set_cookie
    assert "Path=/" in set_cookie
    assert "samesite=lax" in set_cookie.lower()

    engine = sa.create_engine(sync_url)
    with engine.begin() as connection:
        row = connection.execute(
            sa.text("SELECT last_login_at FROM users WHERE id = :id"),
            {"id": user_id.hex},
        ).mappings().one()
    assert row["last_login_at"] is not None


def test_login_wrong_password_returns_generic_error(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "login_invalid.db")
    _seed_user(sync_url, email="jane@example.org", password="Secret123!")

    with _build_client(async_url) as client:
        wrong_password = client.post(
            "/auth/login",
            json={"email": "jane@example.org", "password": "wrongpass"},
        )
        unknown_user = client.post(
            "/auth/login",
            json={"email": "nobody@example.org", "password": "Secret123!"},
        )

    assert wrong_password.status_code == 401
    assert wrong_password.json() == {"detail": "invalid credentials"}
    assert unknown_user.status_code == 401
    assert unknown_user.json() == {"detail": "invalid credentials"}
    assert "set-cookie" not in wrong_password.headers


def test_login_inactive_user_returns_forbidden(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "login_inactive.db")
    _seed_user(sync_url, email="jane@example.org", password="Secret123!", is_active=False)

    with _build_client(async_url) as client:
        response = client.post(
            "/auth/login",
            json={"email": "jane@example.org", "password": "Secret123!"},
        )
        wrong_password = client.post(
            "/auth/login",
            json={"email": "jane@example.org", "password": "wrongpass"},
        )

    assert response.status_code == 403
    assert response.json() == {"detail": "inactive user"}
    assert wrong_password.status_code == 401
    assert wrong_password.json() == {"detail": "invalid credentials"}


def test_login_with_corrupted_stored_hash_returns_server_error(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "login_corrupted.db")
    engine = sa.create_engine(sync_url)
    with engine.begin() as connection:
        _insert_user(
            connection,
            user_id=uuid4(),
            email="jane@example.org",
            password_hash="corrupted-hash",
        )

    with _build_client(async_url) as client:
        response = client.post(
            "/auth/login",
            json={"email": "jane@example.org", "password": "Secret123!"},
        )

    assert response.status_code == 500
    assert response.json() == {"detail": "internal server error"}


def test_refresh_with_cookie_rotates_tokens(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "refresh_cookie.db")
    user_id = _seed_user(sync_url, email="jane@example.org", password="Secret123!")

    with _build_client(async_url) as client:
        login = client.post(
            "/auth/login",
            json={"email": "jane@example.org", "password": "Secret123!"},
        )
        response = client.post("/auth/refresh")

    assert response.status_code == 200
    body = response.json()
    assert body["refresh_token"] != login.json()["refresh_token"]

    tokens = _token_service(async_url)
    access = tokens.verify(body["access_token"]).require_payload()
    refresh = tokens.verify(body["refresh_token"]).require_payload()
    assert access.token_type is TokenType.ACCESS
    assert refresh.token_type is TokenType.REFRESH
    assert access.subject_id == str(user_id)
    assert refresh.subject_id == str(user_id)
    assert response.headers["set-cookie"].startswith(f"refresh_token={body['refresh_token']}")


def test_refresh_with_body_token_rotates_tokens(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "refresh_body.db")
    user_id = _seed_user(sync_url, email="jane@example.org", password="Secret123!")
    refresh_token = _token_service(async_url).issue_refresh_token(str(user_id))

    with _build_client(async_url) as client:
        response = client.post("/auth/refresh", json={"refresh_token": refresh_token})

    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


def test_refresh_rejects_access_token(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "refresh_access_token.db")
    user_id = _seed_user(sync_url, email="jane@example.org", password="Secret123!")
    access_token = _token_service(async_url).issue_access_token(str(user_id))

    with _build_client(async_url) as client:
        response = client.post("/auth/refresh", json={"refresh_token": access_token})

    assert response.status_code == 401
    assert response.json() == {"detail": "invalid or expired refresh token"}


def test_refresh_rejects_deactivated_subject(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "refresh_inactive.db")
    user_id = _seed_user(sync_url, email="jane@example.org", password="Secret123!")
    refresh_token = _token_service(async_url).issue_refresh_token(str(user_id))
    _set_active(sync_url, user_id=user_id, is_active=False)

    with _build_client(async_url) as client:
        response = client.post("/auth/refresh", json={"refresh_token": refresh_token})

    assert response.status_code == 401
    assert response.json() == {"detail": "invalid or expired refresh token"}


def test_refresh_without_token_returns_unauthorized(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "refresh_missing.db")

    with _build_client(async_url) as client:
        empty = client.post("/auth/refresh")
        garbage_body = client.post(
            "/auth/refresh",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

    assert empty.status_code == 401
    assert empty.json() == {"detail": "missing refresh token"}
    assert garbage_body.status_code == 401
    assert garbage_body.json() == {"detail": "missing refresh token"}


def test_me_requires_access_token(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "me.db")
    user_id = _seed_user(sync_url, email="jane@example.org", password="Secret123!")
    tokens = _token_service(async_url)
    access_token = tokens.issue_access_token(str(user_id))
    refresh_token = tokens.issue_refresh_token(str(user_id))

    with _build_client(async_url) as client:
        ok = client.get("/auth/me", headers={"authorization": f"Bearer {access_token}"})
        wrong_type = client.get("/auth/me", headers={"authorization": f"Bearer {refresh_token}"})
        missing = client.get("/auth/me")

    assert ok.status_code == 200
    assert ok.json()["id"] == str(user_id)
    assert "password_hash" not in ok.json()
    assert wrong_type.status_code == 401
    assert wrong_type.json() == {"detail": "invalid or expired access token"}
    assert missing.status_code == 401
    assert missing.json() == {"detail": "missing bearer token"}


class _FailingPasswordHasher(BcryptPasswordHasher):
    def hash_password(self, password: str) -> str:
        raise ValueError("bcrypt backend unavailable")


def test_signup_internal_value_error_is_not_reported_as_client_error(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "signup_internal_error.db")
    app = create_app(settings=_settings(async_url), password_hasher=_FailingPasswordHasher())

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post(
            "/auth/signup",
            json={"name": "Jane Doe", "email": "jane@example.org", "password": "Secret123!"},
        )

    assert response.status_code == 500
    assert "bcrypt backend unavailable" not in response.text
