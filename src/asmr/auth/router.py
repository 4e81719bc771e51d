"""Authentication router: /auth/register, /auth/login, /auth/me, /auth/logout."""

from __future__ import annotations

import jwt
import structlog
from fastapi import APIRouter, Depends, Request, Response
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from asmr.auth.cookies import clear_session_cookie, set_session_cookie
from asmr.auth.dependencies import extract_token, get_current_user
from asmr.auth.jwt import verify_token
from asmr.auth.password import PasswordPolicyError
from asmr.auth.schemas import LoginRequest, LogoutResponse, RegisterRequest, RegisterResponse
from asmr.auth.service import (
    AccountLockedError,
    DuplicateEmailError,
    InvalidCredentialsError,
    authenticate_user,
    open_session,
    register_user,
    revoke_session,
)
from asmr.database import get_session
from asmr.db.models import User
from asmr.exceptions import AppError, AuthenticationRequired, Conflict, ValidationFailed
from asmr.redis_client import get_redis
from asmr.schemas import Envelope, ok
from asmr.users.schemas import UserResponse
from asmr.users.service import build_user_response

logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_meta(request: Request) -> dict[str, str | None]:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


@router.post("/register", response_model=Envelope[RegisterResponse], status_code=201)
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> Envelope[RegisterResponse]:
    """Create a free account and log it in."""
    try:
        user = await register_user(db, email=body.email or "", password=body.password or "", name=body.name)
    except DuplicateEmailError as e:
        raise Conflict(str(e)) from e
    except (PasswordPolicyError, ValueError) as e:
        raise ValidationFailed(str(e)) from e

    user.login_count = 1
    user.last_login = user.created_at
    issued = await open_session(db, user, **_client_meta(request))
    await db.commit()

    set_session_cookie(response, issued.token, issued.exp)
    return ok(RegisterResponse(user=await build_user_response(db, user)))


@router.post("/login", response_model=Envelope[UserResponse])
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> Envelope[UserResponse]:
    """Login with email + password; sets the session cookie."""
    email = (body.email or "").strip()
    password = body.password or ""
    if not email or not password:
        msg = "Email and password are required"
        raise ValidationFailed(msg)

    try:
        user = await authenticate_user(db, redis, email, password)
    except InvalidCredentialsError as e:
        raise AuthenticationRequired(str(e)) from e
    except AccountLockedError as e:
        raise AppError(str(e), status_code=429) from e

    issued = await open_session(db, user, **_client_meta(request))
    await db.commit()
    logger.info("user_logged_in", user_id=user.id)

    set_session_cookie(response, issued.token, issued.exp)
    return ok(await build_user_response(db, user))


@router.get("/me", response_model=Envelope[UserResponse])
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[UserResponse]:
    """Return the current user."""
    return ok(await build_user_response(db, user))


@router.post("/logout", response_model=Envelope[LogoutResponse])
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> Envelope[LogoutResponse]:
    """Revoke the current session if there is one; always clears the cookie."""
    token = extract_token(request)
    payload = None
    if token is not None:
        try:
            payload = verify_token(token)
        except jwt.InvalidTokenError:
            logger.info("logout_with_invalid_token")

    if payload is not None and await revoke_session(db, payload["jti"]):
        await db.commit()
        logger.info("user_logged_out", user_id=payload["sub"])

    clear_session_cookie(response)
    return ok(LogoutResponse(message="Logged out successfully"))
