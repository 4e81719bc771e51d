"""Audio access checks and signed URL issuance."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from asmr.access.policy import can_stream_audio
from asmr.config import get_settings
from asmr.content.service import get_resource
from asmr.db.models import MediaAsset, ResourceAudio, User
from asmr.exceptions import AuthenticationRequired, Forbidden, NotFound, ServerError
from asmr.media.schemas import SignedUrlResponse
from asmr.media.storage import StorageError, StorageNotConfiguredError, get_storage_client
from asmr.users.service import get_owned_resource_ids

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def find_audio(audios: Iterable[ResourceAudio], filename: str) -> ResourceAudio | None:
    """The audio entry whose stored media file is ``filename``."""
    for audio in audios:
        if audio.media is not None and audio.media.filename == filename:
            return audio
    return None


async def issue_audio_url(
    db: AsyncSession,
    user_id: int,
    resource_id: int,
    filename: str,
) -> SignedUrlResponse:
    """
    Mint a pre-signed download URL for one audio file of a resource.

    Raises:
        NotFound: Unknown resource, or no audio with that filename.
        AuthenticationRequired: The caller's account could not be loaded.
        Forbidden: The caller may not stream this resource.
        ServerError: Storage is not configured or signing failed.
    """
    resource = await get_resource(db, resource_id)
    if resource is None:
        msg = "ASMR resource not found"
        raise NotFound(msg)

    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        msg = "Invalid authentication token"
        raise AuthenticationRequired(msg)

    owned = resource.id in await get_owned_resource_ids(db, user.id)
    if not can_stream_audio(user.role, resource.price, owned):
        logger.info("audio_access_denied", user_id=user.id, resource_id=resource.id)
        msg = "Access denied"
        raise Forbidden(msg)

    audio = find_audio(resource.audios, filename)
    if audio is None:
        msg = "Audio file not found"
        raise NotFound(msg)

    expires_in = get_settings().signed_url_expire_seconds
    try:
        url = get_storage_client().presign_get(audio.media.filename, expires_in)
    except StorageNotConfiguredError as e:
        logger.error("storage_not_configured", error=str(e))
        msg = "Failed to generate audio URL"
        raise ServerError(msg) from e
    except StorageError as e:
        logger.error("audio_url_failed", resource_id=resource.id, filename=filename, error=str(e))
        msg = "Failed to generate audio URL"
        raise ServerError(msg) from e

    logger.info("audio_url_issued", user_id=user.id, resource_id=resource.id, filename=filename)
    return SignedUrlResponse(url=url, expires_in=expires_in)


async def list_media(db: AsyncSession, kind: str | None = None) -> list[MediaAsset]:
    """Raw media assets, optionally filtered by kind."""
    query = select(MediaAsset).order_by(MediaAsset.id)
    if kind:
        query = query.where(MediaAsset.kind == kind)
    result = await db.execute(query)
    return list(result.scalars().all())
