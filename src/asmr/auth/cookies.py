"""Session cookie helpers."""

from __future__ import annotations

import time

from fastapi import Response

from asmr.config import get_settings


def _samesite() -> str:
    value = get_settings().cookie_samesite.lower()
    return value if value in {"lax", "strict", "none"} else "lax"


def set_session_cookie(response: Response, token: str, exp: int | None = None) -> None:
    """Attach the session cookie; Max-Age follows the token's remaining lifetime."""
    settings = get_settings()
    if exp is not None:
        max_age = max(exp - int(time.time()), 0)
    else:
        max_age = settings.session_expire_seconds
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=max_age,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite=_samesite(),  # type: ignore[arg-type]
    )


def clear_session_cookie(response: Response) -> None:
    """Expire the session cookie on the client."""
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value="",
        max_age=0,
        expires="Thu, 01 Jan 1970 00:00:00 GMT",
        path="/",
        domain=settings.cookie_domain,
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite=_samesite(),  # type: ignore[arg-type]
    )
