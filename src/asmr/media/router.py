"""Media endpoints: signed audio URLs and the admin media listing."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from asmr.access.policy import can_list_media
from asmr.auth.dependencies import get_current_user
from asmr.content.service import media_response
from asmr.database import get_session
from asmr.db.models import User
from asmr.db.relations import relation_id
from asmr.exceptions import Forbidden, NotFound, ValidationFailed
from asmr.media.schemas import MediaListResponse, SignedUrlResponse
from asmr.media.service import issue_audio_url, list_media
from asmr.schemas import Envelope, ok

router = APIRouter(prefix="/media", tags=["Media"])


@router.get("/audio/{resource_id}", response_model=Envelope[SignedUrlResponse])
async def audio_url(
    resource_id: str,
    filename: str | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[SignedUrlResponse]:
    """Pre-signed, five-minute download URL for an audio track the caller may play."""
    if not filename:
        msg = "filename is required"
        raise ValidationFailed(msg)
    rid = relation_id(resource_id)
    if rid is None:
        msg = "ASMR resource not found"
        raise NotFound(msg)
    return ok(await issue_audio_url(db, user.id, rid, filename))


@router.get("", response_model=Envelope[MediaListResponse])
async def media_index(
    kind: str | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[MediaListResponse]:
    """Raw media listing, admins only."""
    if not can_list_media(user.role):
        msg = "Admin access required"
        raise Forbidden(msg)
    assets = await list_media(db, kind)
    return ok(MediaListResponse(docs=[media_response(a) for a in assets], total_docs=len(assets)))
