"""Runtime settings loaded from environment variables."""

from datetime import timedelta
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from auth_lifecycle.domain.auth.errors import ConfigurationError
from auth_lifecycle.infrastructure.security.token_service import TokenConfig

NonEmptyStr = Annotated[str, Field(min_length=1)]
PositiveInt = Annotated[int, Field(gt=0)]
SigningSecret = Annotated[str, Field(min_length=32)]
BcryptRounds = Annotated[int, Field(ge=4, le=31)]


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_secret: SigningSecret = Field(validation_alias="JWT_SECRET", repr=False)
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256",
        validation_alias="JWT_ALGORITHM",
    )
    access_token_ttl_seconds: PositiveInt = Field(
        default=3600,
        validation_alias="ACCESS_TOKEN_TTL_SECONDS",
    )
    refresh_token_ttl_seconds: PositiveInt = Field(
        default=7 * 24 * 3600,
        validation_alias="REFRESH_TOKEN_TTL_SECONDS",
    )
    bcrypt_rounds: BcryptRounds = Field(default=10, validation_alias="BCRYPT_ROUNDS")
    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    refresh_cookie_secure: bool = Field(default=True, validation_alias="REFRESH_COOKIE_SECURE")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


def build_token_config(settings: Settings) -> TokenConfig:
    """Build the explicit token configuration passed into the token service."""

    return TokenConfig(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        access_token_ttl=timedelta(seconds=settings.access_token_ttl_seconds),
        refresh_token_ttl=timedelta(seconds=settings.refresh_token_ttl_seconds),
    )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings, failing fast on invalid configuration."""

    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        fields = sorted(
            {".".join(str(part) for part in error["loc"]) for error in exc.errors()}
        )
        raise ConfigurationError(f"invalid configuration for: {', '.join(fields)}") from exc
