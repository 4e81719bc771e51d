"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from asmr.access.policy import is_admin, verify_server_token
from asmr.auth.jwt import verify_token
from asmr.auth.service import get_active_session, get_user_by_id
from asmr.config import get_settings
from asmr.database import get_session
from asmr.db.models import User
from asmr.exceptions import AuthenticationRequired, Forbidden


def extract_token(request: Request) -> str | None:
    """Session token from the cookie, falling back to an ``Authorization: Bearer`` header."""
    token = request.cookies.get(get_settings().session_cookie_name)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """
    Resolve the caller from the session token, or None.

    The user row is always loaded from the database; claims in the token are
    not trusted beyond identifying the user and the session.
    """
    token = extract_token(request)
    if token is None:
        return None
    try:
        payload = verify_token(token)
    except jwt.InvalidTokenError:
        return None

    if await get_active_session(db, payload["jti"]) is None:
        return None
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        return None
    user = await get_user_by_id(db, user_id)
    if user is not None:
        request.state.session_id = payload["jti"]
    return user


async def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    """Require an authenticated caller (401 otherwise)."""
    if user is None:
        msg = "Authentication required"
        raise AuthenticationRequired(msg)
    return user


async def require_admin_or_server(
    user: User | None = Depends(get_optional_user),
    x_server_auth_token: str | None = Header(default=None),
) -> User | None:
    """Allow an admin session or a valid server token; returns the admin user if any."""
    if verify_server_token(x_server_auth_token, get_settings().server_auth_token):
        return user
    if user is None:
        msg = "Authentication required"
        raise AuthenticationRequired(msg)
    if not is_admin(user.role):
        msg = "Admin access required"
        raise Forbidden(msg)
    return user
