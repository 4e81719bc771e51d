"""Application exceptions.

``AppError`` subclasses ``HTTPException`` so routers and services can raise
it directly; the global handler renders it into the JSON error envelope
``{"success": false, "message": ..., "details": ...}``.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException


class AppError(HTTPException):
    """Base application error with a stable message and optional details."""

    status_code_default: int = 500

    def __init__(
        self,
        message: str,
        *,
        details: Any = None,  # noqa: ANN401
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail=message,
            headers=headers,
        )
        self.message = message
        self.details = details


class ValidationFailed(AppError):
    """Malformed or missing input (400)."""

    status_code_default = 400


class AuthenticationRequired(AppError):
    """No valid session (401)."""

    status_code_default = 401


class Forbidden(AppError):
    """Authenticated but not allowed (403)."""

    status_code_default = 403


class NotFound(AppError):
    """Entity does not exist or is not visible (404)."""

    status_code_default = 404


class Conflict(AppError):
    """State conflict such as an already-owned resource (409)."""

    status_code_default = 409


class Gone(AppError):
    """Entity existed but can no longer be used, e.g. an expired coupon (410)."""

    status_code_default = 410


class ServerError(AppError):
    """Internal failure whose cause is logged, not returned (500)."""

    status_code_default = 500


class UpstreamError(AppError):
    """A backing store or provider failed (502)."""

    status_code_default = 502
