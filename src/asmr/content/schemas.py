"""Response schemas for ASMR resources, listings and purchases."""

from __future__ import annotations

from datetime import datetime

from asmr.schemas import CamelModel
from asmr.users.schemas import UserResponse


class MediaResponse(CamelModel):
    """Metadata of a stored media asset (never the binary itself)."""

    id: int
    kind: str
    filename: str
    mime_type: str | None = None
    filesize: int | None = None
    language: str | None = None
    title: str | None = None


class AudioItem(CamelModel):
    """An audio track entry."""

    id: int
    order: int
    title: str
    duration: int | None = None
    audio_file: MediaResponse


class SubtitleItem(CamelModel):
    """A subtitle entry."""

    id: int
    language: str
    subtitle_file: MediaResponse


class ImageItem(CamelModel):
    """A gallery image entry."""

    id: int
    caption: str | None = None
    image: MediaResponse


class ResourceResponse(CamelModel):
    """An ASMR resource. ``audios``/``subtitles`` are null when the caller may not see them."""

    id: int
    title: str
    description: str | None = None
    price: int
    public: bool
    visibility: list[str] = []
    cover: MediaResponse | None = None
    images: list[ImageItem] = []
    audios: list[AudioItem] | None = None
    subtitles: list[SubtitleItem] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ResourcePage(CamelModel):
    """One page of resources."""

    docs: list[ResourceResponse]
    total_docs: int
    limit: int
    page: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
    next_page: int | None = None
    prev_page: int | None = None


class TransactionSummary(CamelModel):
    """Ledger summary of a completed purchase."""

    points_deducted: int
    remaining_points: int
    purchase_time: datetime


class PurchaseResponse(CamelModel):
    """Result of ``POST /content/purchase/{id}``."""

    user: UserResponse
    resource: ResourceResponse
    transaction: TransactionSummary
