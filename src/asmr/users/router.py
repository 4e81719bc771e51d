"""User library router: /users/me/library and /users/me/playlist."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from asmr.auth.dependencies import get_current_user
from asmr.database import get_session
from asmr.db.models import User
from asmr.db.relations import relation_id
from asmr.exceptions import NotFound
from asmr.schemas import Envelope, ok
from asmr.users.schemas import LibraryItem, PlaylistItem, PlaylistUpdateResponse
from asmr.users.service import (
    add_to_playlist,
    get_library,
    get_playlist,
    get_playlist_ids,
    remove_from_playlist,
)

router = APIRouter(prefix="/users", tags=["Users"])


def _resource_id(value: str) -> int:
    rid = relation_id(value)
    if rid is None:
        msg = "ASMR resource not found"
        raise NotFound(msg)
    return rid


@router.get("/me/library", response_model=Envelope[list[LibraryItem]])
async def library(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[list[LibraryItem]]:
    """Resources the caller has purchased."""
    return ok(await get_library(db, user.id))


@router.get("/me/playlist", response_model=Envelope[list[PlaylistItem]])
async def playlist(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[list[PlaylistItem]]:
    """The caller's playlist."""
    return ok(await get_playlist(db, user.id))


@router.post("/me/playlist/{resource_id}", response_model=Envelope[PlaylistUpdateResponse])
async def add_playlist_entry(
    resource_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[PlaylistUpdateResponse]:
    """Add a resource to the playlist (no-op if already there)."""
    user_id = user.id
    changed = await add_to_playlist(db, user_id, _resource_id(resource_id))
    await db.commit()
    return ok(PlaylistUpdateResponse(playlist=await get_playlist_ids(db, user_id), changed=changed))


@router.delete("/me/playlist/{resource_id}", response_model=Envelope[PlaylistUpdateResponse])
async def remove_playlist_entry(
    resource_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[PlaylistUpdateResponse]:
    """Remove a resource from the playlist."""
    user_id = user.id
    changed = await remove_from_playlist(db, user_id, _resource_id(resource_id))
    await db.commit()
    return ok(PlaylistUpdateResponse(playlist=await get_playlist_ids(db, user_id), changed=changed))
