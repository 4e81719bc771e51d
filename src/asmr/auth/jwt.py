"""
Session token management.

A session token is an HS256 JWT whose ``jti`` matches a ``user_sessions`` row,
so a token can be revoked server-side (logout) before it expires.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from asmr.config import get_settings


@dataclass(frozen=True)
class IssuedToken:
    """An encoded session token and the claims the caller needs to persist."""

    token: str
    token_id: str
    issued_at: datetime
    expires_at: datetime

    @property
    def exp(self) -> int:
        """Expiry as a unix timestamp."""
        return int(self.expires_at.timestamp())


def create_session_token(user_id: int, role: str, *, token_id: str | None = None) -> IssuedToken:
    """
    Create a session token for a user.

    Args:
        user_id: The user's database ID.
        role: The user's role at issue time (informational; access checks reload the user).
        token_id: Optional JTI; a UUID4 is generated when omitted.

    Returns:
        IssuedToken with the encoded JWT and its timing.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(seconds=settings.session_expire_seconds)
    jti = token_id or str(uuid.uuid4())
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "jti": jti,
        "iat": now,
        "exp": expires_at,
        "iss": settings.jwt_issuer,
        "type": "session",
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return IssuedToken(token=token, token_id=jti, issued_at=now, expires_at=expires_at)


def verify_token(token: str, expected_type: str = "session") -> dict[str, Any]:
    """
    Verify and decode a session token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or of the wrong type.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != expected_type:
        msg = f"Expected token type '{expected_type}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)
    if not payload.get("jti") or not payload.get("sub"):
        msg = "Token is missing required claims"
        raise jwt.InvalidTokenError(msg)

    return payload
