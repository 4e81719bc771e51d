"""
Authentication business logic.

Handles registration, credential checks, login lockout and session records.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from asmr.auth.jwt import IssuedToken, create_session_token
from asmr.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password,
    verify_password,
)
from asmr.config import get_settings
from asmr.db.models import User, UserSession

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class DuplicateEmailError(ValueError):
    """Raised when registering an email that already has an account."""


class InvalidCredentialsError(ValueError):
    """Raised when email/password do not match an account."""


class AccountLockedError(PermissionError):
    """Raised after too many failed login attempts."""


def is_valid_email(email: str) -> bool:
    """Loose email shape check (``local@domain.tld``)."""
    return bool(_EMAIL_RE.match(email))


def default_nickname(email: str, name: str | None = None) -> str:
    """Nickname from the supplied name, else the email local part, else ``user``."""
    if name and name.strip():
        return name.strip()[:64]
    local = email.split("@", 1)[0]
    return local[:64] or "user"


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    name: str | None = None,
) -> User:
    """
    Create a ``free`` account.

    Raises:
        ValueError: Invalid email.
        PasswordPolicyError: Password too short or too long.
        DuplicateEmailError: Email already registered.
    """
    email = email.strip().lower()
    if not email or not is_valid_email(email):
        msg = "Invalid email address"
        raise ValueError(msg)
    validate_password(password)

    if await get_user_by_email(db, email) is not None:
        msg = "Email already exists"
        raise DuplicateEmailError(msg)

    now = datetime.now(timezone.utc)
    user = User(
        email=email,
        password_hash=hash_password(password),
        nickname=default_nickname(email, name),
        is_verified=False,
        role="free",
        points=0,
        created_at=now,
        login_count=0,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # Concurrent registration of the same email
        await db.rollback()
        msg = "Email already exists"
        raise DuplicateEmailError(msg) from e
    logger.info("user_created", user_id=user.id, email=email)
    return user


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def authenticate_user(
    db: AsyncSession,
    redis: Redis,
    email: str,
    password: str,
) -> User:
    """
    Authenticate a user with email + password.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password.
        AccountLockedError: Too many recent failures.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        msg = "Login failed"
        raise InvalidCredentialsError(msg)

    if await check_account_lockout(redis, user.id):
        msg = "Account temporarily locked. Try again later."
        raise AccountLockedError(msg)

    if not verify_password(password, user.password_hash):
        await increment_failed_login(redis, user.id)
        msg = "Login failed"
        raise InvalidCredentialsError(msg)

    await clear_failed_login(redis, user.id)

    user.last_login = datetime.now(timezone.utc)
    user.login_count = (user.login_count or 0) + 1

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        logger.info("password_rehashed", user_id=user.id)

    await db.flush()
    return user


# ---------------------------------------------------------------------------
# Account lockout
# ---------------------------------------------------------------------------


async def check_account_lockout(redis: Redis, user_id: int) -> bool:
    """Check if the account is locked due to too many failed login attempts."""
    settings = get_settings()
    count_str = await redis.get(f"login_attempts:{user_id}")
    if count_str is None:
        return False
    return int(count_str) >= settings.account_lockout_threshold


async def increment_failed_login(redis: Redis, user_id: int) -> int:
    """Increment failed login counter. Returns the new count."""
    settings = get_settings()
    key = f"login_attempts:{user_id}"
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, settings.account_lockout_duration_minutes * 60)
    return int(count)


async def clear_failed_login(redis: Redis, user_id: int) -> None:
    """Clear the failed login counter after a successful login."""
    await redis.delete(f"login_attempts:{user_id}")


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


async def open_session(
    db: AsyncSession,
    user: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> IssuedToken:
    """Issue a session token and persist its JTI so it can be revoked."""
    issued = create_session_token(user.id, user.role)
    db.add(
        UserSession(
            id=issued.token_id,
            user_id=user.id,
            issued_at=issued.issued_at,
            expires_at=issued.expires_at,
            ip_address=ip_address,
            user_agent=user_agent[:512] if user_agent else None,
        )
    )
    await db.flush()
    return issued


async def get_active_session(db: AsyncSession, token_id: str) -> UserSession | None:
    """Return the session row for a JTI unless it has been revoked."""
    result = await db.execute(
        select(UserSession)
        .where(UserSession.id == token_id)
        .where(UserSession.is_revoked == False)  # noqa: E712
    )
    return result.scalar_one_or_none()


async def revoke_session(db: AsyncSession, token_id: str) -> bool:
    """Revoke a session by JTI. Returns True if an active session was revoked."""
    result = await db.execute(
        update(UserSession)
        .where(UserSession.id == token_id)
        .where(UserSession.is_revoked == False)  # noqa: E712
        .values(is_revoked=True, revoked_at=datetime.now(timezone.utc))
    )
    await db.flush()
    return bool(result.rowcount)
