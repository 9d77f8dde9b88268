"""FastAPI router for signup, login, refresh and profile endpoints."""

from __future__ import annotations

import logging
from typing import Annotated, TypeVar

from fastapi import APIRouter, Header, HTTPException, Request, Response
from pydantic import BaseModel, ValidationError

from auth_lifecycle.application.dto.auth_models import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    SignupRequest,
    SignupResponse,
    TokenResponse,
    UserResponse,
)
from auth_lifecycle.application.services.auth_service import AuthOutcome, AuthService
from auth_lifecycle.application.services.signup_service import SignupOutcome, SignupService
from auth_lifecycle.application.services.token_rotation_service import (
    RotationOutcome,
    TokenRotationService,
)
from auth_lifecycle.domain.auth.errors import CredentialFormatError, CredentialPolicyError
from auth_lifecycle.infrastructure.http.auth_guard import (
    BearerAuthGuard,
    InvalidAuthTokenError,
    MissingAuthTokenError,
)

REFRESH_COOKIE_NAME = "refresh_token"
_ModelT = TypeVar("_ModelT", bound=BaseModel)
logger = logging.getLogger(__name__)


def build_auth_router(
    *,
    signup_service: SignupService,
    auth_service: AuthService,
    rotation_service: TokenRotationService,
    auth_guard: BearerAuthGuard,
    access_token_ttl_seconds: int,
    refresh_token_ttl_seconds: int,
    refresh_cookie_secure: bool = True,
) -> APIRouter:
    """Build router exposing the account and token lifecycle endpoints."""

    router = APIRouter(prefix="/auth", tags=["auth"])

    def set_refresh_cookie(response: Response, refresh_token: str) -> None:
        response.set_cookie(
            key=REFRESH_COOKIE_NAME,
            value=refresh_token,
            max_age=refresh_token_ttl_seconds,
            path="/",
            secure=refresh_cookie_secure,
            httponly=True,
            samesite="lax",
        )

    @router.post("/signup", response_model=SignupResponse, status_code=201)
    async def signup(request: Request) -> SignupResponse:
        payload = await _parse_json_body(
            request,
            SignupRequest,
            invalid_detail="name, email and password are required",
        )
        try:
            result = await signup_service.register(
                name=payload.name,
                email=payload.email,
                password=payload.password,
            )
        except CredentialPolicyError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        if result.outcome is SignupOutcome.EMAIL_TAKEN:
            raise HTTPException(status_code=409, detail="email already registered")

        assert result.user is not None
        assert result.access_token is not None
        return SignupResponse(
            user=UserResponse.from_record(result.user),
            access_token=result.access_token,
            expires_in=access_token_ttl_seconds,
        )

    @router.post("/login", response_model=LoginResponse)
    async def login(request: Request, response: Response) -> LoginResponse:
        payload = await _parse_json_body(
            request,
            LoginRequest,
            invalid_detail="email and password are required",
        )
        try:
            result = await auth_service.authenticate(
                email=payload.email,
                password=payload.password,
            )
        except CredentialFormatError as exc:
            raise HTTPException(status_code=500, detail="internal server error") from exc

        if result.outcome is AuthOutcome.INACTIVE_USER:
            raise HTTPException(status_code=403, detail="inactive user")
        if result.outcome is not AuthOutcome.SUCCESS:
            raise HTTPException(status_code=401, detail="invalid credentials")

        assert result.user is not None
        assert result.tokens is not None
        set_refresh_cookie(response, result.tokens.refresh_token)
        return LoginResponse(
            user=UserResponse.from_record(result.user),
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
            expires_in=result.tokens.access_token_expires_in,
        )

    @router.post("/refresh", response_model=TokenResponse)
    async def refresh(request: Request, response: Response) -> TokenResponse:
        presented = request.cookies.get(REFRESH_COOKIE_NAME)
        if not presented:
            presented = await _read_body_refresh_token(request)
        if not presented:
            raise HTTPException(status_code=401, detail="missing refresh token")

        result = await rotation_service.rotate(refresh_token=presented)
        if result.outcome is not RotationOutcome.ROTATED:
            raise HTTPException(status_code=401, detail="invalid or expired refresh token")

        assert result.tokens is not None
        set_refresh_cookie(response, result.tokens.refresh_token)
        return TokenResponse(
            access_token=result.tokens.access_token,
            refresh_token=result.tokens.refresh_token,
            expires_in=result.tokens.access_token_expires_in,
        )

    @router.get("/me", response_model=UserResponse)
    async def me(authorization: Annotated[str | None, Header()] = None) -> UserResponse:
        try:
            user = await auth_guard.require_active_user(authorization_header=authorization)
        except MissingAuthTokenError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        except InvalidAuthTokenError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        return UserResponse.from_record(user)

    return router


async def _parse_json_body(
    request: Request,
    model: type[_ModelT],
    *,
    invalid_detail: str,
) -> _ModelT:
    """Validate a JSON request body, mapping every client mistake to HTTP 400."""

    content_type = request.headers.get("content-type", "")
    if "application/json" not in content_type:
        raise HTTPException(status_code=400, detail="content-type must be application/json")

    raw_body = await request.body()
    try:
        return model.model_validate_json(raw_body)
    except ValidationError as error:
        if any(item["type"] == "json_invalid" for item in error.errors()):
            raise HTTPException(status_code=400, detail="invalid json format") from error
        logger.info("request_body_invalid model=%s", model.__name__)
        raise HTTPException(status_code=400, detail=invalid_detail) from error


async def _read_body_refresh_token(request: Request) -> str | None:
    """Read the refresh token from an optional JSON body, ignoring unusable bodies."""

    raw_body = await request.body()
    if not raw_body:
        return None
    try:
        return RefreshRequest.model_validate_json(raw_body).refresh_token
    except ValidationError:
        return None
