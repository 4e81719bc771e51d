"""Response schemas for media endpoints."""

from __future__ import annotations

from asmr.content.schemas import MediaResponse
from asmr.schemas import CamelModel


class SignedUrlResponse(CamelModel):
    """A short-lived download URL."""

    url: str
    expires_in: int


class MediaListResponse(CamelModel):
    docs: list[MediaResponse]
    total_docs: int
