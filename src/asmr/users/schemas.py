"""Request/response schemas for user-facing payloads."""

from __future__ import annotations

from datetime import datetime

from asmr.schemas import CamelModel


class UserResponse(CamelModel):
    """The caller's own account, including balance and ownership."""

    id: int
    email: str
    nickname: str
    role: str
    points: int
    is_verified: bool = False
    created_at: datetime | None = None
    last_login: datetime | None = None
    owned_asmr_resources: list[int] = []
    playlist: list[int] = []


class LibraryItem(CamelModel):
    """An owned resource with the purchase record."""

    id: int
    title: str
    price_paid: int
    purchased_at: datetime


class PlaylistItem(CamelModel):
    """A resource saved to the caller's playlist."""

    id: int
    title: str
    price: int
    added_at: datetime


class PlaylistUpdateResponse(CamelModel):
    """Playlist ids after an add/remove; ``changed`` is False for no-ops."""

    playlist: list[int]
    changed: bool
