"""Request/response schemas for authentication endpoints.

Request fields are optional strings on purpose: presence and format are
checked by the handlers so the client gets the same messages the web
player already displays.
"""

from __future__ import annotations

from pydantic import BaseModel

from asmr.schemas import CamelModel
from asmr.users.schemas import UserResponse


class RegisterRequest(BaseModel):
    """Email registration request."""

    email: str | None = None
    password: str | None = None
    name: str | None = None


class LoginRequest(BaseModel):
    """Login with email + password."""

    email: str | None = None
    password: str | None = None


class RegisterResponse(CamelModel):
    """Registration result; the session cookie is set on the response."""

    user: UserResponse


class LogoutResponse(CamelModel):
    """Logout acknowledgement."""

    message: str
