"""User library and playlist logic."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from asmr.db.models import AsmrResource, PlaylistEntry, User, UserOwnedResource
from asmr.exceptions import NotFound
from asmr.users.schemas import LibraryItem, PlaylistItem, UserResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_owned_resource_ids(db: AsyncSession, user_id: int) -> set[int]:
    """The caller's ownership set."""
    result = await db.execute(
        select(UserOwnedResource.resource_id).where(UserOwnedResource.user_id == user_id)
    )
    return set(result.scalars().all())


async def get_playlist_ids(db: AsyncSession, user_id: int) -> list[int]:
    """Resource ids in the caller's playlist, oldest first."""
    result = await db.execute(
        select(PlaylistEntry.resource_id)
        .where(PlaylistEntry.user_id == user_id)
        .order_by(PlaylistEntry.added_at, PlaylistEntry.resource_id)
    )
    return list(result.scalars().all())


async def build_user_response(db: AsyncSession, user: User) -> UserResponse:
    """Serialize a user together with their ownership set and playlist."""
    owned = await get_owned_resource_ids(db, user.id)
    playlist = await get_playlist_ids(db, user.id)
    return UserResponse(
        id=user.id,
        email=user.email,
        nickname=user.nickname,
        role=user.role,
        points=user.points,
        is_verified=user.is_verified,
        created_at=user.created_at,
        last_login=user.last_login,
        owned_asmr_resources=sorted(owned),
        playlist=playlist,
    )


async def get_library(db: AsyncSession, user_id: int) -> list[LibraryItem]:
    """Owned resources, most recent purchase first."""
    result = await db.execute(
        select(UserOwnedResource)
        .where(UserOwnedResource.user_id == user_id)
        .order_by(UserOwnedResource.purchased_at.desc())
    )
    return [
        LibraryItem(
            id=row.resource_id,
            title=row.resource.title,
            price_paid=row.price_paid,
            purchased_at=row.purchased_at,
        )
        for row in result.scalars().unique().all()
    ]


async def get_playlist(db: AsyncSession, user_id: int) -> list[PlaylistItem]:
    """Playlist entries with resource summaries."""
    result = await db.execute(
        select(PlaylistEntry)
        .where(PlaylistEntry.user_id == user_id)
        .order_by(PlaylistEntry.added_at, PlaylistEntry.resource_id)
    )
    return [
        PlaylistItem(
            id=entry.resource_id,
            title=entry.resource.title,
            price=entry.resource.price,
            added_at=entry.added_at,
        )
        for entry in result.scalars().unique().all()
    ]


async def add_to_playlist(db: AsyncSession, user_id: int, resource_id: int) -> bool:
    """
    Add a public resource to the playlist. Returns False if it was already there.

    Raises:
        NotFound: Unknown or non-public resource.
    """
    resource = await db.get(AsmrResource, resource_id)
    if resource is None or not resource.public:
        msg = "ASMR resource not found"
        raise NotFound(msg)

    existing = await db.get(PlaylistEntry, (user_id, resource_id))
    if existing is not None:
        return False

    db.add(PlaylistEntry(user_id=user_id, resource_id=resource_id, added_at=datetime.now(timezone.utc)))
    try:
        await db.flush()
    except IntegrityError:
        # Added concurrently by another request
        await db.rollback()
        return False
    logger.info("playlist_added", user_id=user_id, resource_id=resource_id)
    return True


async def remove_from_playlist(db: AsyncSession, user_id: int, resource_id: int) -> bool:
    """Remove a resource from the playlist. Returns False if it was not there."""
    result = await db.execute(
        delete(PlaylistEntry)
        .where(PlaylistEntry.user_id == user_id)
        .where(PlaylistEntry.resource_id == resource_id)
    )
    await db.flush()
    return bool(result.rowcount)
